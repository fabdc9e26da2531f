# pricelist/services/pipeline.py
"""
Entry points.

    extract(text, buffer=None, credential=None) -> [Record, ...]

- No credential: heuristic extractor only.
- Credential: AI candidates first, heuristic on any failure (ai_extract.py).
- Never raises for bad or missing AI access. The one hard error is a call with
  neither text nor buffer.

extract_document() returns the same records wrapped in a DocResult with
provenance for the review UI; the *_sync variants are for callers without an
event loop (Streamlit, CLI).
"""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

from pricelist.models.schemas import DocResult, ExtractionPolicy, Record
from pricelist.services.ai_extract import FailureReason, extract_with_fallback
from pricelist.services.extract import RULES_VERSION, extract_heuristic
from pricelist.util.logger import get_logger


async def extract_document(
    doc_id: str,
    text: Optional[str],
    buffer: Optional[bytes] = None,
    credential: Optional[str] = None,
    *,
    policy: Optional[ExtractionPolicy] = None,
    **ai_options: Any,
) -> DocResult:
    if text is None and buffer is None:
        raise ValueError("extract needs document text or a document buffer")

    logger = get_logger(__name__)
    policy = policy or ExtractionPolicy()

    if credential:
        records, provenance = await extract_with_fallback(text, buffer, credential, policy=policy, **ai_options)
    else:
        records = extract_heuristic(text, policy)
        provenance = {"source": "heuristic", "fallback_reason": FailureReason.NO_CREDENTIAL.value}

    drafts = sum(1 for r in records if r.is_draft)
    provenance.update({
        "rules_version": RULES_VERSION,
        "record_count": len(records),
        "draft_count": drafts,
    })
    logger.info(f"Extracted {len(records)} rows ({drafts} drafts) via {provenance['source']} for document: {doc_id}")
    return DocResult(doc_id=doc_id, records=records, provenance=provenance)


async def extract(
    text: Optional[str],
    buffer: Optional[bytes] = None,
    credential: Optional[str] = None,
    **kwargs: Any,
) -> List[Record]:
    doc = await extract_document("document", text, buffer, credential, **kwargs)
    return doc.records


def extract_sync(
    text: Optional[str],
    buffer: Optional[bytes] = None,
    credential: Optional[str] = None,
    **kwargs: Any,
) -> List[Record]:
    return asyncio.run(extract(text, buffer, credential, **kwargs))


def extract_document_sync(
    doc_id: str,
    text: Optional[str],
    buffer: Optional[bytes] = None,
    credential: Optional[str] = None,
    **kwargs: Any,
) -> DocResult:
    return asyncio.run(extract_document(doc_id, text, buffer, credential, **kwargs))
