# pricelist/services/reconstruct.py
"""
Line healing.

PDF layout engines like to wrap the price columns of a row onto their own line:

    Zapper 4S 3.25-19
    450 650

reconstruct() glues such a price-only line back onto the line above it. It is
the only place lines get merged; nothing downstream re-merges.
"""

from __future__ import annotations

import re
from typing import Iterator, Sequence

from extraction.patterns import PRICE_ONLY_REGEX

price_only_pat = re.compile(PRICE_ONLY_REGEX)


def is_price_only(line: str) -> bool:
    return bool(price_only_pat.match(line))


def reconstruct(lines: Sequence[str]) -> Iterator[str]:
    """
    Walk `lines` with one line of lookahead.

    If the next line is exactly two numeric tokens it is appended to the current
    line (single space) and both are consumed; otherwise the current line is
    emitted alone. Output is never longer than the input and keeps its order.

    This is a generator: one pass only. Call again with the original lines to
    reprocess.
    """
    i = 0
    n = len(lines)
    while i < n:
        if i + 1 < n and is_price_only(lines[i + 1]):
            yield f"{lines[i]} {lines[i + 1].strip()}"
            i += 2
        else:
            yield lines[i]
            i += 1
