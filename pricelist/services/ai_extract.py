# pricelist/services/ai_extract.py
"""
AI-assisted extraction with a fixed fallback chain.

- One instruction describes the target rows (brand, model, type, dp, mrp).
  The document goes along either as raw bytes (inlineData, base64) or as a
  text excerpt capped at TEXT_CHAR_BUDGET characters.

- CANDIDATES is a static, ordered list of (model, API version) pairs. They are
  tried one at a time, in order. A candidate that errors (transport, timeout,
  HTTP >= 400, error body, empty text) is logged and skipped; it is never
  retried. The first one that answers with text wins and the rest are not
  called.

- The answer is sanitized: code fences stripped, then the first JSON array of
  objects in the text is parsed and coerced into Records.

- Any ExtractionFailure (no credential, every candidate failed, unusable
  payload, cancelled) falls back to the heuristic extractor. Callers always
  get a list.
"""

from __future__ import annotations

import asyncio
import base64
import json
import math
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from pricelist.models.schemas import UNVERIFIED, Candidate, ExtractionPolicy, Record
from pricelist.services.classify import parse_price
from pricelist.services.extract import extract_heuristic
from pricelist.util.logger import get_logger

logger = get_logger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com"
DEFAULT_TIMEOUT = 60.0
TEXT_CHAR_BUDGET = 30000
PDF_MIME_TYPE = "application/pdf"

CANDIDATES: Tuple[Candidate, ...] = (
    Candidate(model="gemini-2.0-flash", api_version="v1beta"),
    Candidate(model="gemini-1.5-flash", api_version="v1beta"),
    Candidate(model="gemini-1.5-flash-latest", api_version="v1beta"),
    Candidate(model="gemini-1.5-flash-8b", api_version="v1beta"),
    Candidate(model="gemini-1.5-flash", api_version="v1"),
    Candidate(model="gemini-1.5-pro", api_version="v1"),
)

EXTRACTION_PROMPT = """You are reading a tyre/tube dealer price list.

Return EVERY product row as a JSON array. Each element is an object with exactly these keys:
- "brand": tyre brand from the nearest section header (e.g. "MRF", "CEAT", "JK TYRE"); "UNKNOWN" if none
- "model": the product label (pattern name and size), without the serial number
- "type": "Tubeless" if the row is tubeless (T/L, TL, Tubeless), otherwise "Tube"
- "dp": dealer price as a number (first price column)
- "mrp": maximum retail price as a number (second price column)

Rules:
- Skip headers, footers, page numbers, dates and column titles.
- Numbers inside the model (sizes like 3.25-19, load indices) are part of the model, not prices.
- If a row has no readable prices, still include it with "dp": 0, "mrp": 0 and "type": "Unverified".
- Output the JSON array only. No commentary.
"""


class FailureReason(str, Enum):
    NO_CREDENTIAL = "NoCredential"
    ALL_CANDIDATES_EXHAUSTED = "AllCandidatesExhausted"
    MALFORMED_PAYLOAD = "MalformedPayload"
    CANCELLED = "Cancelled"


class ExtractionFailure(Exception):
    """The AI path gave up; the caller falls back to the heuristic extractor."""

    def __init__(self, reason: FailureReason, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)


class CandidateError(Exception):
    """One candidate failed; the loop moves on to the next."""

    def __init__(self, candidate: Candidate, detail: str):
        self.candidate = candidate
        super().__init__(f"{candidate.model}@{candidate.api_version}: {detail}")


# ---------- request ----------

def build_request_body(
    text: Optional[str],
    buffer: Optional[bytes] = None,
    mime_type: str = PDF_MIME_TYPE,
    char_budget: int = TEXT_CHAR_BUDGET,
) -> Dict[str, Any]:
    parts: List[Dict[str, Any]] = [{"text": EXTRACTION_PROMPT}]
    if buffer:
        parts.append({
            "inlineData": {
                "mimeType": mime_type,
                "data": base64.standard_b64encode(buffer).decode("ascii"),
            }
        })
    else:
        parts.append({"text": "PRICE LIST TEXT:\n" + (text or "")[:char_budget]})
    return {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {"temperature": 0},
    }


def candidate_url(candidate: Candidate, api_base: str = DEFAULT_API_BASE) -> str:
    return f"{api_base.rstrip('/')}/{candidate.api_version}/models/{candidate.model}:generateContent"


def payload_text(body: Any, candidate: Candidate) -> str:
    """Pull the text out of `{candidates: [{content: {parts: [{text}]}}]}`."""
    if not isinstance(body, dict):
        raise CandidateError(candidate, "response body is not a JSON object")
    err = body.get("error")
    if err:
        msg = err.get("message") if isinstance(err, dict) else str(err)
        raise CandidateError(candidate, f"service error: {msg}")
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        raise CandidateError(candidate, "no candidates in response")
    if not isinstance(parts, list):
        raise CandidateError(candidate, "response parts are not a list")
    text = "".join(
        p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)
    ).strip()
    if not text:
        raise CandidateError(candidate, "empty text payload")
    return text


async def request_candidate(
    client: httpx.AsyncClient,
    candidate: Candidate,
    body: Dict[str, Any],
    credential: str,
    api_base: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    url = candidate_url(candidate, api_base)
    headers = {"Content-Type": "application/json", "x-goog-api-key": credential}
    try:
        response = await client.post(url, json=body, headers=headers, timeout=timeout)
    except httpx.HTTPError as e:
        raise CandidateError(candidate, f"transport error: {e}") from e
    except Exception as e:
        raise CandidateError(candidate, f"request failed: {e!r}") from e

    try:
        data = response.json()
    except ValueError:
        data = None

    if response.status_code >= 400:
        msg = None
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            msg = data["error"].get("message")
        raise CandidateError(candidate, f"HTTP {response.status_code}: {msg or 'request rejected'}")
    if data is None:
        raise CandidateError(candidate, "response body is not JSON")
    return payload_text(data, candidate)


# ---------- payload sanitizing ----------

_FENCE_PAT = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def strip_code_fences(response_text: str) -> str:
    """'```json\\n[...]\\n```' -> '[...]'; text without fences comes back stripped."""
    response_text = response_text.strip()
    m = _FENCE_PAT.search(response_text)
    if m:
        return m.group(1).strip()
    # unterminated fence: drop the opening line
    if response_text.startswith("```"):
        return response_text.split("\n", 1)[1].strip() if "\n" in response_text else ""
    return response_text


def extract_json_array(response_text: str) -> List[Dict[str, Any]]:
    """
    First well-formed, non-empty JSON array of objects in the model's answer.

    Raises:
        ValueError: if no such array can be found
    """
    text = strip_code_fences(response_text)
    decoder = json.JSONDecoder()
    for m in re.finditer(r"\[", text):
        try:
            value, _ = decoder.raw_decode(text, m.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, list) and value and all(isinstance(v, dict) for v in value):
            return value
    raise ValueError(f"No JSON array of objects in response: {text[:200]}...")


def normalize_type(value: Any) -> str:
    s = str(value or "").strip().lower()
    if "tubeless" in s or s in ("tl", "t/l"):
        return "Tubeless"
    if s.startswith("unverified"):
        return UNVERIFIED
    return "Tube"


def coerce_price(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value) if isinstance(value, (int, float)) else parse_price(str(value))
    except OverflowError:
        return None
    if price is None or not math.isfinite(price) or price < 0:
        return None
    return price


def record_from_payload(item: Dict[str, Any], policy: ExtractionPolicy) -> Optional[Record]:
    model = str(item.get("model") or "").strip()
    if not model:
        return None
    brand = str(item.get("brand") or "").strip() or policy.default_brand
    row_type = normalize_type(item.get("type"))
    dp = coerce_price(item.get("dp", item.get("dealerPrice")))
    mrp = coerce_price(item.get("mrp", item.get("retailPrice")))
    if row_type == UNVERIFIED or dp is None or mrp is None:
        return Record(brand=brand, model=model, type=UNVERIFIED, dp=0, mrp=0)
    return Record(brand=brand, model=model, type=row_type, dp=dp, mrp=mrp)


def records_from_payload(items: Sequence[Dict[str, Any]], policy: ExtractionPolicy) -> List[Record]:
    records = [r for r in (record_from_payload(it, policy) for it in items) if r is not None]
    if not records:
        raise ValueError(f"None of {len(items)} payload items had a model")
    return records


# ---------- candidate loop ----------

async def _run_candidates(
    client: httpx.AsyncClient,
    body: Dict[str, Any],
    credential: str,
    candidates: Sequence[Candidate],
    policy: ExtractionPolicy,
    api_base: str,
    timeout: float,
    cancel: Optional[asyncio.Event],
) -> Tuple[List[Record], Candidate]:
    total = len(candidates)
    for idx, candidate in enumerate(candidates, start=1):
        if cancel is not None and cancel.is_set():
            raise ExtractionFailure(FailureReason.CANCELLED, f"stopped before candidate {idx}/{total}")
        try:
            answer = await request_candidate(client, candidate, body, credential, api_base, timeout)
        except CandidateError as e:
            logger.warning(f"Candidate [{idx}/{total}] failed: {e}")
            continue

        logger.info(f"Candidate [{idx}/{total}] {candidate.model}@{candidate.api_version} answered ({len(answer)} chars)")
        try:
            records = records_from_payload(extract_json_array(answer), policy)
        except (ValueError, TypeError, OverflowError) as e:
            raise ExtractionFailure(FailureReason.MALFORMED_PAYLOAD, str(e)) from e
        return records, candidate

    raise ExtractionFailure(FailureReason.ALL_CANDIDATES_EXHAUSTED, f"{total} candidates tried")


async def extract_via_model(
    text: Optional[str],
    buffer: Optional[bytes] = None,
    credential: Optional[str] = None,
    *,
    candidates: Sequence[Candidate] = CANDIDATES,
    policy: Optional[ExtractionPolicy] = None,
    api_base: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_TIMEOUT,
    char_budget: int = TEXT_CHAR_BUDGET,
    mime_type: str = PDF_MIME_TYPE,
    client: Optional[httpx.AsyncClient] = None,
    cancel: Optional[asyncio.Event] = None,
) -> Tuple[List[Record], Candidate]:
    """
    Ask the model service for the rows.

    Returns:
        (records, winning candidate)

    Raises:
        ExtractionFailure: NoCredential, AllCandidatesExhausted, MalformedPayload, Cancelled
    """
    if not credential:
        raise ExtractionFailure(FailureReason.NO_CREDENTIAL)
    policy = policy or ExtractionPolicy()
    body = build_request_body(text, buffer, mime_type, char_budget)
    source = f"{len(buffer)} byte buffer" if buffer else f"{min(len(text or ''), char_budget)} chars of text"
    logger.info(f"AI extraction over {source}, {len(candidates)} candidates")

    if client is not None:
        return await _run_candidates(client, body, credential, candidates, policy, api_base, timeout, cancel)
    async with httpx.AsyncClient(timeout=timeout) as own_client:
        return await _run_candidates(own_client, body, credential, candidates, policy, api_base, timeout, cancel)


async def extract_with_fallback(
    text: Optional[str],
    buffer: Optional[bytes] = None,
    credential: Optional[str] = None,
    *,
    policy: Optional[ExtractionPolicy] = None,
    **options: Any,
) -> Tuple[List[Record], Dict[str, Any]]:
    """
    AI first, heuristic on any ExtractionFailure.

    Returns:
        (records, provenance) where provenance says which path produced them.
    """
    policy = policy or ExtractionPolicy()
    try:
        records, candidate = await extract_via_model(text, buffer, credential, policy=policy, **options)
    except ExtractionFailure as e:
        logger.info(f"AI extraction unavailable ({e}); using heuristic extractor")
        return extract_heuristic(text, policy), {"source": "heuristic", "fallback_reason": e.reason.value}

    return records, {"source": "ai", "model": candidate.model, "api_version": candidate.api_version}
