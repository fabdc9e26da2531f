# pricelist/services/drafts.py
"""
Draft preservation.

A line that is not boilerplate but has no usable price pair may still be a
real product row (prices in a column the PDF dropped, a price typed as "on
request", a model name wrapped away from its prices). Dropping it silently is
worse than showing a reviewer one extra row, so such lines come out as drafts:
zero prices, type "Unverified".

Short leftovers ("4S", "Rear") and lines with no letters at all ("450 -",
"-----") are still dropped.
"""

from __future__ import annotations

import re
from typing import Optional

from pricelist.models.schemas import UNVERIFIED, ExtractionPolicy, Record

_DEFAULT_POLICY = ExtractionPolicy()

HAS_LETTER_PAT = re.compile(r"[A-Za-z]")


def is_draft_candidate(line: str, policy: ExtractionPolicy = _DEFAULT_POLICY) -> bool:
    return len(line) > policy.draft_min_length and bool(HAS_LETTER_PAT.search(line))


def make_draft(line: str, brand: str, policy: ExtractionPolicy = _DEFAULT_POLICY) -> Optional[Record]:
    if not is_draft_candidate(line, policy):
        return None
    return Record(brand=brand, model=line.strip(), type=UNVERIFIED, dp=0, mrp=0)
