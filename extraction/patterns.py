"""
Centralized patterns and lookups.

- BRAND_NORMALIZER: lowercase brand tokens -> canonical brand name (priority order).
- HEADER_CUES: words that mark a line as a section header ("MRF PRICE LIST").
- JUNK_PATTERNS: header/footer/separator regexes; a line matching enough of them is noise.
- PRICE_PAIR_REGEX / PRICE_ONLY_REGEX: the trailing "DP MRP" anchor and the wrapped-price line.
- SERIAL_PREFIX_REGEX: leading "1." / "2)" / "3 -" row numbers.
- TUBELESS_CUES: tokens that flip the row type to Tubeless.

These live here so extraction rules stay readable and we change patterns in one place.
"""


# One price token: digits, optional thousands separators, at most one decimal point.
# NOTE: single backslashes, do not double-escape!
PRICE_TOKEN = r'\d[\d,]*(?:\.\d+)?'

# Two price tokens at the absolute end of the line: "... 1,450 1,650"
PRICE_PAIR_REGEX = rf'(?:^|\s)({PRICE_TOKEN})\s+({PRICE_TOKEN})$'

# A line that is nothing but a price pair (PDF wrapped the columns onto their own line)
PRICE_ONLY_REGEX = rf'^\s*{PRICE_TOKEN}\s+{PRICE_TOKEN}\s*$'

# "1. Zapper", "12) Zapper", "3 - Zapper", "4 Zapper"
SERIAL_PREFIX_REGEX = r'^\d{1,4}(?:\s*[.)\-])?\s+'

# Keys are lowercase and matched on word boundaries; dict order is priority order.
# Longer tokens must come before their aliases ("jk tyre" before "jk").
BRAND_NORMALIZER = {
    "jk tyre": "JK TYRE",
    "mrf": "MRF",
    "ceat": "CEAT",
    "apollo": "APOLLO",
    "goodyear": "GOODYEAR",
    "dunlop": "DUNLOP",
    "bridgestone": "BRIDGESTONE",
    "michelin": "MICHELIN",
    "tvs": "TVS",
    "continental": "CONTINENTAL",
    "yokohama": "YOKOHAMA",
    "birla": "BIRLA",
    "jk": "JK TYRE",
}

# Helpful for quick iteration in priority order (lowercase)
BRAND_KEYS = list(BRAND_NORMALIZER.keys())

# A brand on a line only counts as a section header near one of these
HEADER_CUES = ["price", "list", "tariff"]

# Structural boilerplate. Each entry counts once toward the noise score.
JUNK_PATTERNS = [
    r"\bs\.?\s?no\b|\bsr\.?\s?no\b|\bsl\.?\s?no\b|\bsrno\b",   # serial-number headers
    r"\bparticulars\b",
    r"\bdescription\b",
    r"\bmodel\b",
    r"\bpattern\b",
    r"\bsize\b",
    r"\bd\.?p\.?(?=\s|$)",                                       # "DP", "D.P."
    r"\bm\.?r\.?p\.?(?=\s|$)",                                   # "MRP", "M.R.P."
    r"\bprice\b",
    r"\brate\b",
    r"\bpage\b",
    r"\bpage\s*\d+\s*(?:of|/)\s*\d+\b",                         # "Page 2 of 9"
    r"\bdate\b",
    r"\bw\.?e\.?f\b",
    r"\b\d{1,2}/\d{1,2}/\d{2,4}\b|\b\d{1,2}[.\-]\d{1,2}[.\-]\d{4}\b",  # 01/04/24, 01.04.2024
    r"^[\s\-=_*.|]{3,}$",                                        # separator rules
]

# Row type cues (word-bounded, lowercase)
TUBELESS_CUES = ["tubeless", "t/l", "tl"]
