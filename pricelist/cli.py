"""
Command-line extraction: one price list in, rows out on stdout.

    pricelist-extract price_list.pdf                  # JSON, AI first if a key is configured
    pricelist-extract price_list.txt --text --no-ai   # plain text, rules only
    pricelist-extract price_list.pdf -f csv --tighten # CSV, de-duplicated for import
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from pricelist.config import settings
from pricelist.services.parse_pdf import pdf_to_text
from pricelist.services.pipeline import extract_document_sync
from pricelist.services.validate import record_to_row, tighten
from pricelist.util.logger import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pricelist-extract",
        description="Extract brand/model/type/DP/MRP rows from a dealer price list.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  GEMINI_API_KEY       Model service key (optional; without it only the built-in rules run)
  NOISE_THRESHOLD      Junk-pattern hits that make a line noise (default 2)
  DRAFT_MIN_LENGTH     Unpriced lines longer than this become drafts (default 18)
        """
    )
    parser.add_argument("file", type=str, help="Path to a PDF (or a text file with --text)")
    parser.add_argument("--text", action="store_true", help="Treat FILE as already-extracted plain text")
    parser.add_argument("--api-key", type=str, help="Model service key (overrides GEMINI_API_KEY)")
    parser.add_argument("--no-ai", action="store_true", help="Skip the model service, rules only")
    parser.add_argument(
        "-f", "--format",
        choices=["json", "csv"],
        default="json",
        help="Output format (default: json)"
    )
    parser.add_argument("--tighten", action="store_true", help="De-duplicate on (brand, model, type)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level)

    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    buffer = None
    if args.text:
        text = path.read_text(encoding="utf-8", errors="replace")
    else:
        buffer = path.read_bytes()
        text = pdf_to_text(buffer)

    credential = None if args.no_ai else (args.api_key or settings.gemini_api_key)
    doc = extract_document_sync(
        path.name,
        text,
        buffer,
        credential,
        policy=settings.policy(),
        api_base=settings.gemini_api_base,
        timeout=settings.ai_request_timeout,
        char_budget=settings.ai_text_char_budget,
    )

    records = tighten(doc.records) if args.tighten else doc.records
    if args.format == "csv":
        df = pd.DataFrame([record_to_row(r) for r in records], columns=["brand", "model", "type", "dp", "mrp", "needs_review"])
        sys.stdout.write(df.to_csv(index=False))
    else:
        print(json.dumps([r.model_dump() for r in records], indent=2, ensure_ascii=False))

    print(f"{len(records)} rows via {doc.provenance['source']}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
