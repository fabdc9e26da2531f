# pricelist/services/brand.py
"""
Brand context.

A price list names its brand once in a section header ("MRF PRICE LIST",
"CEAT") and every following row inherits it until the next header. The brand
is threaded through the line pass as a plain value: resolve_brand() takes the
brand carried from the previous line and returns the brand for this one.

A line counts as a brand header only if it contains a known brand token AND
it is either short or carries a header cue ("price", "list"). A brand named
inside a long data row ("Tyre suitable for MRF rims ...") changes nothing.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from extraction.patterns import BRAND_KEYS, BRAND_NORMALIZER, HEADER_CUES
from pricelist.models.schemas import ExtractionPolicy

_DEFAULT_POLICY = ExtractionPolicy()

BRAND_PATS: List[Tuple[re.Pattern, str]] = [
    (re.compile(rf"\b{re.escape(key)}\b", re.IGNORECASE), BRAND_NORMALIZER[key])
    for key in BRAND_KEYS
]
HEADER_CUE_PAT = re.compile(r"\b(?:" + "|".join(map(re.escape, HEADER_CUES)) + r")\b", re.IGNORECASE)


def find_brand(text: str) -> Optional[str]:
    """First brand token in priority order, as its canonical name."""
    for pat, canonical in BRAND_PATS:
        if pat.search(text):
            return canonical
    return None


def match_brand_header(line: str, policy: ExtractionPolicy = _DEFAULT_POLICY) -> Optional[str]:
    """Canonical brand if `line` reads like a brand section header, else None."""
    brand = find_brand(line)
    if brand is None:
        return None
    if len(line) < policy.brand_header_max_length or HEADER_CUE_PAT.search(line):
        return brand
    return None


def resolve_brand(line: str, current_brand: str, policy: ExtractionPolicy = _DEFAULT_POLICY) -> str:
    return match_brand_header(line, policy) or current_brand


def initial_brand(lines: List[str], policy: ExtractionPolicy = _DEFAULT_POLICY) -> str:
    """
    Brand a document starts with.

    Normally the policy default ("UNKNOWN"). With prescan_document_brand on,
    the highest-priority brand token found anywhere in the document wins, so
    rows above the first header still get a brand.
    """
    if policy.prescan_document_brand:
        brand = find_brand("\n".join(lines))
        if brand:
            return brand
    return policy.default_brand
