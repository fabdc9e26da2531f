# Sphinx config; build from the project root with: sphinx-build -b html . _build
import os
import sys

sys.path.insert(0, os.path.abspath("."))

project = "PriceListDocs"
author = "PriceListDocs contributors"
copyright = "2026, PriceListDocs contributors"
release = "2026-10"

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
    "sphinx.ext.autosummary",
]
autosummary_generate = True
# not needed to read docstrings
autodoc_mock_imports = ["pdfplumber", "streamlit", "pandas", "httpx"]

autodoc_default_options = {"members": True}
autodoc_typehints = "description"
napoleon_numpy_docstring = False

exclude_patterns = ["_build", "spec.md", "SPEC_FULL.md", "DESIGN.md", "TRIAGE.md", "REVIEW_FINDINGS.md"]

html_theme = "alabaster"
html_title = f"{project} {release}"
