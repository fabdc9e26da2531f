"""
Post-processing for extracted rows before import.

- De-dupe: collapse rows that share (brand, model, type), the key the price
  store upserts on. Later rows win, exactly as repeated upserts would.
- Normalize: light text cleanup where it prevents duplicate keys (case, spacing).
- Order: first appearance, so the table still reads like the PDF.

This runs after `extract()` and before we show/export the combined table. The
extraction core itself never de-dupes.
"""


import re
from typing import Dict, List, Optional, Tuple
from pricelist.models.schemas import Record


def _norm(s: Optional[str]) -> str:
    """Lowercase + collapse whitespace for stable comparisons."""
    return re.sub(r"\s+", " ", s).strip().lower() if s else ""


def _dedupe_key(rec: Record) -> Tuple[str, str, str]:
    """
    A price-list row is unique by:
    - brand
    - model
    - type
    """
    return (_norm(rec.brand), _norm(rec.model), _norm(rec.type))


def tighten(records: List[Record]) -> List[Record]:
    """
    - Keep the LAST row for each (brand, model, type).
    - Keep the position where the key first appeared.
    """
    best: Dict[Tuple[str, str, str], Record] = {}
    for rec in records:
        best[_dedupe_key(rec)] = rec
    return list(best.values())


def record_to_row(rec: Record) -> Dict:
    return {
        "brand": rec.brand,
        "model": rec.model,
        "type": rec.type,
        "dp": rec.dp,
        "mrp": rec.mrp,
        "needs_review": rec.is_draft,
    }
