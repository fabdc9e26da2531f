# pricelist/services/classify.py
"""
Per-line classification: noise, record, or draft.

Rules, in order:
1. Noise: the line hits >= policy.noise_threshold entries of JUNK_PATTERNS
   ("Sr No Model DP MRP", "Page 2 of 9", "-------"). Dropped.
2. Record: the line ends with two price tokens. The LAST two numeric tokens
   are the pair (dp, mrp); anything numeric before them (rim sizes like
   "3.25-19", load indices) stays in the model label. The label loses its
   leading serial number ("1.", "2)"). Emitted only if mrp > min_retail_price.
3. Draft: anything else that is long enough and has letters in it. See
   drafts.py.
"""

from __future__ import annotations

import math
import re
from enum import Enum
from typing import List, Optional, Tuple

from extraction.patterns import JUNK_PATTERNS, PRICE_PAIR_REGEX, SERIAL_PREFIX_REGEX, TUBELESS_CUES
from pricelist.models.schemas import ExtractionPolicy, Record
from pricelist.services.drafts import make_draft

_DEFAULT_POLICY = ExtractionPolicy()

price_pair_pat = re.compile(PRICE_PAIR_REGEX)
serial_prefix_pat = re.compile(SERIAL_PREFIX_REGEX)
JUNK_PATS: List[re.Pattern] = [re.compile(p, re.IGNORECASE) for p in JUNK_PATTERNS]
TUBELESS_PAT = re.compile(r"\b(?:" + "|".join(map(re.escape, TUBELESS_CUES)) + r")(?![\w/])", re.IGNORECASE)


class RowKind(str, Enum):
    RECORD = "record"
    DRAFT = "draft"
    NOISE = "noise"
    SKIP = "skip"


def parse_price(token: str) -> Optional[float]:
    """'1,450' -> 1450.0; returns None if it doesn't parse cleanly."""
    s = token.strip().replace(",", "")
    if not s:
        return None
    try:
        price = float(s)
    except ValueError:
        return None
    return price if math.isfinite(price) else None


def junk_score(line: str) -> int:
    """How many junk patterns the line hits (each pattern counts once)."""
    return sum(1 for pat in JUNK_PATS if pat.search(line))


def is_noise(line: str, policy: ExtractionPolicy = _DEFAULT_POLICY) -> bool:
    return junk_score(line) >= policy.noise_threshold


def strip_serial(label: str) -> str:
    """'1. Zapper 4S' -> 'Zapper 4S'."""
    return serial_prefix_pat.sub("", label.strip(), count=1).strip()


def split_price_pair(line: str) -> Optional[Tuple[str, str, str]]:
    """
    Split a row into (label, dp_token, mrp_token) on its trailing price pair.
    The label is everything left of the first price token, un-stripped.
    """
    m = price_pair_pat.search(line)
    if not m:
        return None
    return line[:m.start(1)], m.group(1), m.group(2)


def row_type(line: str) -> str:
    return "Tubeless" if TUBELESS_PAT.search(line) else "Tube"


def parse_record(line: str, brand: str, policy: ExtractionPolicy = _DEFAULT_POLICY) -> Optional[Record]:
    """Record from a row with a valid trailing price pair, else None."""
    parts = split_price_pair(line)
    if not parts:
        return None
    label, dp_tok, mrp_tok = parts
    dp = parse_price(dp_tok)
    mrp = parse_price(mrp_tok)
    if dp is None or mrp is None or mrp <= policy.min_retail_price:
        return None
    model = strip_serial(label)
    if len(model) <= 1:
        return None
    return Record(brand=brand, model=model, type=row_type(line), dp=dp, mrp=mrp)


def classify_row(
    line: str,
    brand: str,
    policy: ExtractionPolicy = _DEFAULT_POLICY,
) -> Tuple[RowKind, Optional[Record]]:
    """
    Three-way outcome for one reconstructed line.

    Returns:
        (RowKind.NOISE, None) for boilerplate,
        (RowKind.RECORD, record) for a priced row,
        (RowKind.DRAFT, draft) for a plausible row without a usable price pair,
        (RowKind.SKIP, None) for short leftovers.
    """
    if is_noise(line, policy):
        return RowKind.NOISE, None

    rec = parse_record(line, brand, policy)
    if rec is not None:
        return RowKind.RECORD, rec

    draft = make_draft(line, brand, policy)
    if draft is not None:
        return RowKind.DRAFT, draft
    return RowKind.SKIP, None
