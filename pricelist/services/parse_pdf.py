"""
PDF -> plain text (parser adapter).

- Uses pdfplumber to walk pages and pull each page's text.
- Pages are joined with newlines; lines stay as pdfplumber lays them out.
- Leaves every layout heuristic to the extraction layer (this module just
  surfaces what the PDF actually contains).

Why separate this:
- The extraction core only ever sees text (plus, for the AI path, the raw
  bytes). Swapping parsers does not touch the rules.
"""

import io
from pathlib import Path
from typing import Union

import pdfplumber
from pricelist.util.logger import get_logger


def pdf_to_text(source: Union[str, Path, bytes]) -> str:
    """
    Read a PDF (path or raw bytes) and return its text, one PDF line per line.

    Notes/assumptions:
    - Scanned PDFs with no text layer come back as "" (no OCR here).
    - x/y tolerances are tuned for tabular price lists.

    Returns:
        str: page texts joined with "\\n".
    """
    logger = get_logger(__name__)
    label = f"{len(source)} byte buffer" if isinstance(source, bytes) else str(source)
    logger.info(f"Starting PDF text extraction for: {label}")

    handle = io.BytesIO(source) if isinstance(source, bytes) else source
    pages = []
    try:
        with pdfplumber.open(handle) as pdf:
            logger.info(f"Opened PDF with {len(pdf.pages)} pages")
            for p_idx, page in enumerate(pdf.pages, start=1):
                text = page.extract_text(x_tolerance=2, y_tolerance=3) or ""
                logger.debug(f"Page {p_idx}: {len(text.splitlines())} lines")
                pages.append(text)

        out = "\n".join(pages)
        logger.info(f"Successfully parsed PDF: {len(out)} characters of text")
        return out

    except Exception as e:
        logger.error(f"Error parsing PDF {label}: {str(e)}")
        raise
