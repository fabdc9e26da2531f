# pricelist/services/extract.py
"""
Heuristic extraction rules (no AI, no network, no state between calls):

- Normalize: drop \\r, split on newlines, fold odd PDF spaces, trim, drop blanks.

- Heal: a line that is just "450 650" is glued onto the line above it
  (reconstruct.py). Nothing else merges lines.

- Brand context: header lines like "MRF PRICE LIST" or a bare "CEAT" set the
  brand; following rows inherit it until the next header (brand.py). The
  brand is passed line to line, never stored.

- Classify each healed line (classify.py):
    * noise ("Sr No Model DP MRP", "Page 2 of 9") -> dropped
    * "<serial>. <model ...> <dp> <mrp>" -> Record, type from T/L cues
    * long, lettered, unpriced -> Draft (zero prices, "Unverified")

- A brand header is context, not data: it never becomes a Draft.

- Output keeps input line order. No sorting, no de-dup (that is validate.py's
  job, and only for import).
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from pricelist.models.schemas import ExtractionPolicy, Record
from pricelist.services.brand import initial_brand, match_brand_header
from pricelist.services.classify import RowKind, classify_row
from pricelist.services.reconstruct import reconstruct
from pricelist.util.logger import get_logger

RULES_VERSION = "2026-10-price-pair-anchor"

# PDF weirdness: treat non-breaking and figure spaces as plain spaces
_WS = r"[ \t\u00A0\u2007\u202F]+"


def normalize_lines(text: Optional[str]) -> List[str]:
    if not text:
        return []
    out: List[str] = []
    for raw in text.replace("\r", "").split("\n"):
        line = re.sub(_WS, " ", raw).strip()
        if line:
            out.append(line)
    return out


def process_line(
    line: str,
    brand: str,
    policy: ExtractionPolicy,
) -> Tuple[str, RowKind, Optional[Record]]:
    """
    One step of the line pass: (brand in) -> (brand out, outcome, record).
    """
    header_brand = match_brand_header(line, policy)
    brand = header_brand or brand
    kind, rec = classify_row(line, brand, policy)
    if header_brand and kind is RowKind.DRAFT:
        return brand, RowKind.SKIP, None
    return brand, kind, rec


def extract_heuristic(text: Optional[str], policy: Optional[ExtractionPolicy] = None) -> List[Record]:
    """
    Text -> ordered Records (drafts included).

    Pure function of `text` and `policy`; calling it twice gives the same list.
    """
    logger = get_logger(__name__)
    policy = policy or ExtractionPolicy()

    lines = normalize_lines(text)
    if not lines:
        return []

    brand = initial_brand(lines, policy)
    records: List[Record] = []
    counts = {kind: 0 for kind in RowKind}

    healed = 0
    for line in reconstruct(lines):
        healed += 1
        brand, kind, rec = process_line(line, brand, policy)
        counts[kind] += 1
        logger.debug(f"[{kind.value}] brand={brand} line={line!r}")
        if rec is not None:
            records.append(rec)

    logger.info(
        f"Heuristic pass: {len(lines)} lines -> {healed} healed rows -> "
        f"{counts[RowKind.RECORD]} records, {counts[RowKind.DRAFT]} drafts, "
        f"{counts[RowKind.NOISE]} noise, {counts[RowKind.SKIP]} skipped"
    )
    return records
