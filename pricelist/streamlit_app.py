"""
Streamlit front-end for price-list extraction.

- Accepts one or more uploaded price-list PDFs.
- Runs `pdf_to_text()` -> `extract_document()` per file (AI first when a key is
  set, heuristic otherwise or on any AI failure).
- Shows an editable per-document table; drafts (type "Unverified", zero
  prices) are flagged for the reviewer to complete.
- Shows a combined table de-duplicated on (brand, model, type).
- Exposes CSV/JSON downloads (per doc and combined).

Goal: stop retyping dealer price lists. The reviewer fixes drafts here and
exports a clean list for import.
"""

from __future__ import annotations

# --- ensure package imports work when launched directly ---
import sys, os
sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import hashlib
import json
from typing import List, Dict, Any

import pandas as pd
import streamlit as st

# --- Internal modules ---
from pricelist.config import settings
from pricelist.models.schemas import DocResult, Record
from pricelist.services.parse_pdf import pdf_to_text
from pricelist.services.pipeline import extract_document_sync
from pricelist.services.validate import record_to_row, tighten
from pricelist.util.logger import configure_logging

configure_logging(settings.log_level)

COLUMNS = ["brand", "model", "type", "dp", "mrp", "needs_review"]

# ---------------------------- Page setup ----------------------------

st.set_page_config(page_title="Tyre Price List Extractor", layout="wide")
st.title("Tyre Price List Extractor")
st.caption("Parse dealer price-list PDFs → brand, model, type, dealer price (DP), retail price (MRP).")

# ---------------------------- Sidebar help ----------------------------

with st.sidebar:
    st.header("How it works")
    st.markdown(
        "- With an API key, the document goes to the model first; on any failure the built-in rules take over.\n"
        "- Rules: wrapped price columns are re-joined, headers/footers dropped, the last two numbers are DP and MRP.\n"
        "- Rows without readable prices are kept as **drafts** (type `Unverified`, prices 0) for you to fill in.\n"
        "- Uniqueness: de-dup on (brand + model + type), last row wins."
    )
    st.divider()
    api_key = st.text_input("Gemini API key (optional)", value=settings.gemini_api_key or "", type="password")
    send_pdf = st.checkbox("Send the PDF itself to the model", value=True)

# ---------------------------- Uploader & Controls ----------------------------

uploaded = st.file_uploader(
    "Upload one or more price-list PDFs",
    type=["pdf"],
    accept_multiple_files=True,
    help="Drag-and-drop or browse. Multiple files will be combined and de-duplicated below."
)

run_btn = st.button("Run Extraction", type="primary")


# ---------------------------- Helpers ----------------------------

def file_hash(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()[:16]


def rows_to_dataframe(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    for c in COLUMNS:
        if c not in df.columns:
            df[c] = None
    return df[COLUMNS]


def _cell(v: Any, default: Any) -> Any:
    # new editor rows come back as None/NaN
    return default if v is None or pd.isna(v) or v == "" else v


def dataframe_to_records(df: pd.DataFrame) -> List[Record]:
    """Reviewer edits -> Records (rows with a blank model are dropped)."""
    out: List[Record] = []
    for row in df.to_dict(orient="records"):
        model = str(_cell(row.get("model"), "")).strip()
        if not model:
            continue
        out.append(Record(
            brand=str(_cell(row.get("brand"), settings.default_brand)),
            model=model,
            type=_cell(row.get("type"), "Unverified"),
            dp=abs(float(_cell(row.get("dp"), 0))),
            mrp=abs(float(_cell(row.get("mrp"), 0))),
        ))
    return out


# ---------------------------- Main run ----------------------------

if run_btn and uploaded:
    results: List[DocResult] = []
    policy = settings.policy()

    for uf in uploaded:
        data = uf.read()
        doc_id = f"{uf.name}-{file_hash(data)}"
        text = pdf_to_text(data)
        doc = extract_document_sync(
            doc_id,
            text,
            data if send_pdf else None,
            api_key or None,
            policy=policy,
            api_base=settings.gemini_api_base,
            timeout=settings.ai_request_timeout,
            char_budget=settings.ai_text_char_budget,
        )
        doc.provenance["text_preview"] = text.splitlines()[:40]
        results.append(doc)

    st.session_state["results"] = results

results = st.session_state.get("results", [])

# ---------------------------- Display results ----------------------------

if not results:
    st.info("Upload PDFs and click **Run Extraction** to see results.")
else:
    tabs = st.tabs([r.doc_id for r in results])
    reviewed: List[Record] = []

    for tab, doc in zip(tabs, results):
        with tab:
            prov = doc.provenance
            source = prov.get("source")
            if source == "ai":
                st.success(f"Extracted by {prov.get('model')} ({prov.get('api_version')})")
            else:
                st.warning(f"Extracted by built-in rules ({prov.get('fallback_reason')})")

            st.subheader("Rows (this document)")
            df = rows_to_dataframe([record_to_row(r) for r in doc.records])
            edited = st.data_editor(
                df,
                num_rows="dynamic",
                use_container_width=True,
                disabled=["needs_review"],
                column_config={
                    "type": st.column_config.SelectboxColumn(options=["Tubeless", "Tube", "Unverified"]),
                },
                key=f"editor-{doc.doc_id}",
            )
            st.caption(f"{prov.get('draft_count', 0)} draft rows need prices.")

            col_dl1, col_dl2 = st.columns(2)
            with col_dl1:
                safe_doc = doc.model_dump()
                safe_doc.get("provenance", {}).pop("text_preview", None)
                st.download_button(
                    "Download JSON (this doc)",
                    data=json.dumps(safe_doc, indent=2),
                    file_name=f"{doc.doc_id}.json",
                    mime="application/json",
                    use_container_width=True
                )
            with col_dl2:
                st.download_button(
                    "Download CSV (this doc)",
                    data=edited.to_csv(index=False),
                    file_name=f"{doc.doc_id}.csv",
                    mime="text/csv",
                    use_container_width=True
                )

            with st.expander("Debug: first 40 text lines"):
                st.write(prov.get("text_preview", []))

            reviewed.extend(dataframe_to_records(edited))

    st.markdown("## Combined Results (All Documents, De-Duplicated)")
    combined_rows = [record_to_row(r) for r in tighten(reviewed)]
    combined_df = rows_to_dataframe(combined_rows)
    st.dataframe(combined_df, use_container_width=True)

    col_all1, col_all2 = st.columns(2)
    with col_all1:
        st.download_button(
            "Download CSV (combined unique)",
            data=combined_df.to_csv(index=False),
            file_name="price_list_combined_unique.csv",
            mime="text/csv",
            use_container_width=True
        )
    with col_all2:
        st.download_button(
            "Download JSON (combined unique)",
            data=json.dumps([{k: v for k, v in row.items() if k != "needs_review"} for row in combined_rows], indent=2),
            file_name="price_list_combined_unique.json",
            mime="application/json",
            use_container_width=True
        )
