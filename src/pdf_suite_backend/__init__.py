"""
PDF Suite Backend - REST API for everyday PDF operations

This package provides a FastAPI-based web service behind the PDF Suite
front end. It enables:

- Merging several PDFs into one document
- Extracting page ranges into a new document
- Converting Word (.docx) documents to PDF
- Compressing PDFs at three levels
- Removing password protection from PDFs
- Burning canvas highlights and freehand strokes into PDF pages

The backend is a thin orchestration layer: uploads are validated and kept
in a per-request scratch directory, the document work is delegated to
PyMuPDF and python-docx, and the resulting bytes are streamed back.

Key Components:
    - main: FastAPI application and HTTP endpoint definitions
    - annotations: Annotation pipeline (normalize, map, draw, serialize)
    - geometry: Canvas-space to page-space coordinate mapping
    - document_store: PyMuPDF-backed document load/draw/serialize capability
    - operations: Merge, split, compress and unlock
    - conversion / rendering: Word to HTML to PDF
    - models: Pydantic models for annotations and responses
    - configuration: Config loading and environment overrides
    - uploads / utils: Upload lifecycle and filesystem helpers

Usage:
    Run the API server with:
        uvicorn pdf_suite_backend.main:app --reload --host 0.0.0.0 --port 5000

    Or use the console script:
        pdf-suite-backend
"""
