"""
Data shapes for the extractor.

- Record: one price-list row (brand, model, type, dealer price, retail price).
- ExtractionPolicy: every tunable of the heuristic pass (thresholds, default brand).
- Candidate: one (model, API version) pair the AI orchestrator may try.
- DocResult: per-document wrapper with a doc_id, list of Records, and provenance.

If I need a new output column, I add it to `Record` here first and then populate it
in `classify.py` (heuristic) and `ai_extract.py` (model payload).
"""


from typing import List, Literal, Dict
from pydantic import BaseModel, ConfigDict, Field

RowType = Literal["Tubeless", "Tube", "Unverified"]

UNVERIFIED: RowType = "Unverified"


class Record(BaseModel):
    """
    One extracted price-list row.

    What ends up in CSV/JSON:
    - brand: canonical brand carried from the nearest header ("MRF", "JK TYRE")
    - model: the label left of the price pair, serial number stripped
    - type: "Tubeless" / "Tube", or "Unverified" for a draft
    - dp / mrp: dealer price and retail price; both 0 on a draft
    """

    brand: str
    model: str
    type: RowType
    dp: float = Field(default=0, ge=0)
    mrp: float = Field(default=0, ge=0)

    @property
    def is_draft(self) -> bool:
        return self.type == UNVERIFIED


class ExtractionPolicy(BaseModel):
    """
    Tunables for the noise/record/draft classification.

    The thresholds moved around while tuning against real vendor PDFs, so they
    are data rather than code:
    - noise_threshold: junk-pattern hits that make a line noise
    - draft_min_length: a draft line must be strictly longer than this
    - brand_header_max_length: a bare brand line shorter than this is a header
    - min_retail_price: mrp must exceed this (guards against page numbers)
    """

    model_config = ConfigDict(frozen=True)

    noise_threshold: int = Field(default=2, ge=1)
    draft_min_length: int = Field(default=18, ge=0)
    brand_header_max_length: int = Field(default=20, ge=1)
    min_retail_price: float = Field(default=10, ge=0)
    default_brand: str = "UNKNOWN"
    prescan_document_brand: bool = False


class Candidate(BaseModel):
    """One (model identifier, API surface version) pair."""

    model_config = ConfigDict(frozen=True)

    model: str
    api_version: str


class DocResult(BaseModel):
    """
    Final output for one document.

    - doc_id: filename or filename-hash
    - records: extracted rows in input line order
    - provenance: source ("ai" / "heuristic"), winning candidate or fallback reason
    """

    doc_id: str
    records: List[Record] = Field(default_factory=list)
    provenance: Dict = Field(default_factory=dict)
