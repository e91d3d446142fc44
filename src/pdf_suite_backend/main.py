from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from .annotations import run_annotation_pipeline
from .configuration import configure_logging, get_settings, max_upload_bytes
from .conversion import convert_word_to_pdf
from .errors import (
    AnnotationError,
    ConversionError,
    DocumentLoadError,
    IncorrectPasswordError,
    PageRangeError,
    PdfSuiteError,
    SerializationError,
    UploadTooLargeError,
)
from .middleware import RequestLoggingMiddleware
from .models import HealthStatus, ServiceInfo
from .operations import compress_document, merge_documents, split_document, unlock_document
from .rendering import HtmlRenderer, StoryRenderer
from .uploads import store_upload, upload_workspace
from .utils import (
    PDF_CONTENT_TYPES,
    PDF_EXTENSIONS,
    WORD_CONTENT_TYPES,
    WORD_EXTENSIONS,
    ensure_directory,
    matches_type,
    sanitize_label,
)

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="PDF Suite API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.server.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

upload_root = ensure_directory(Path(settings.uploads.directory))

ENDPOINTS = [
    "GET  /api/health",
    "POST /api/merge",
    "POST /api/split",
    "POST /api/convert-to-pdf",
    "POST /api/compress",
    "POST /api/unlock",
    "POST /api/annotate",
]

# Most specific first.
ERROR_STATUS_CODES = [
    (IncorrectPasswordError, 401),
    (DocumentLoadError, 422),
    (PageRangeError, 400),
    (ConversionError, 422),
    (UploadTooLargeError, 413),
    (SerializationError, 500),
]


def get_upload_root() -> Path:
    return upload_root


def get_renderer() -> HtmlRenderer:
    return StoryRenderer(
        paper_size=str(settings.conversion.paper_size),
        margin=float(settings.conversion.margin),
    )


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _status_for(exc: PdfSuiteError) -> int:
    if isinstance(exc, AnnotationError):
        return 422 if isinstance(exc.cause, DocumentLoadError) else 500
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


@app.exception_handler(PdfSuiteError)
async def pdf_suite_error_handler(request: Request, exc: PdfSuiteError) -> JSONResponse:
    status_code = _status_for(exc)
    logger.error(f"{request.url.path} failed ({status_code}): {exc}")
    return _error_response(status_code, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error_response(404, "Endpoint not found")
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
    return _error_response(400, f"Invalid request fields: {fields}")


def _require_upload(file: Optional[UploadFile], extensions: tuple, content_types: tuple, kind: str) -> UploadFile:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not matches_type(file.filename, file.content_type, extensions, content_types):
        raise HTTPException(status_code=400, detail=f"Only {kind} uploads are supported")
    return file


async def _read_upload(file: UploadFile, workspace: Path, extensions: tuple) -> bytes:
    stored = await store_upload(
        file,
        workspace,
        extensions,
        max_bytes=max_upload_bytes(),
        chunk_size=int(settings.uploads.chunk_size),
    )
    return stored.read_bytes()


def _pdf_response(content: bytes, filename: str, headers: Optional[Dict[str, str]] = None) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"', **(headers or {})},
    )


@app.get("/", response_model=ServiceInfo)
def service_info() -> ServiceInfo:
    return ServiceInfo(status="OK", message="PDF Suite Backend", endpoints=ENDPOINTS)


@app.get("/api/health", response_model=HealthStatus)
def healthcheck() -> HealthStatus:
    logger.info("Health check called")
    return HealthStatus(status="OK", message="PDF Suite Backend Running")


@app.post("/api/merge")
async def merge(
    files: Optional[List[UploadFile]] = File(None),
    root: Path = Depends(get_upload_root),
) -> Response:
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    for file in files:
        _require_upload(file, PDF_EXTENSIONS, PDF_CONTENT_TYPES, "PDF")

    logger.info(f"Merging {len(files)} PDFs...")
    with upload_workspace(root) as workspace:
        documents = [await _read_upload(file, workspace, PDF_EXTENSIONS) for file in files]
        merged = await run_in_threadpool(merge_documents, documents)

    logger.info("Merge successful")
    return _pdf_response(merged, "merged.pdf")


@app.post("/api/split")
async def split(
    file: Optional[UploadFile] = File(None),
    page_range: str = Form("", alias="range"),
    root: Path = Depends(get_upload_root),
) -> Response:
    _require_upload(file, PDF_EXTENSIONS, PDF_CONTENT_TYPES, "PDF")
    if not page_range.strip():
        raise HTTPException(status_code=400, detail="Page range is required")

    logger.info(f"Splitting with range {page_range!r}")
    with upload_workspace(root) as workspace:
        data = await _read_upload(file, workspace, PDF_EXTENSIONS)  # type: ignore[arg-type]
        extracted = await run_in_threadpool(split_document, data, page_range)

    logger.info("Split successful")
    return _pdf_response(extracted, f"split_pages_{sanitize_label(page_range, 'pages')}.pdf")


@app.post("/api/convert-to-pdf")
async def convert_to_pdf(
    file: Optional[UploadFile] = File(None),
    root: Path = Depends(get_upload_root),
    renderer: HtmlRenderer = Depends(get_renderer),
) -> Response:
    _require_upload(file, WORD_EXTENSIONS, WORD_CONTENT_TYPES, "Word (.docx)")

    logger.info("Converting Word to PDF...")
    with upload_workspace(root) as workspace:
        data = await _read_upload(file, workspace, WORD_EXTENSIONS)  # type: ignore[arg-type]
        converted = await run_in_threadpool(convert_word_to_pdf, data, file.filename, renderer)  # type: ignore[union-attr]

    logger.info("Conversion successful")
    return _pdf_response(converted, "converted.pdf")


@app.post("/api/compress")
async def compress(
    file: Optional[UploadFile] = File(None),
    level: str = Form("medium"),
    root: Path = Depends(get_upload_root),
) -> Response:
    _require_upload(file, PDF_EXTENSIONS, PDF_CONTENT_TYPES, "PDF")

    logger.info(f"Compression level: {level}")
    with upload_workspace(root) as workspace:
        data = await _read_upload(file, workspace, PDF_EXTENSIONS)  # type: ignore[arg-type]
        result = await run_in_threadpool(compress_document, data, level)

    return _pdf_response(
        result.content,
        "compressed.pdf",
        headers={
            "X-Original-Size": str(result.original_size),
            "X-Compressed-Size": str(result.compressed_size),
        },
    )


@app.post("/api/unlock")
async def unlock(
    file: Optional[UploadFile] = File(None),
    password: str = Form(""),
    root: Path = Depends(get_upload_root),
) -> Response:
    _require_upload(file, PDF_EXTENSIONS, PDF_CONTENT_TYPES, "PDF")

    with upload_workspace(root) as workspace:
        data = await _read_upload(file, workspace, PDF_EXTENSIONS)  # type: ignore[arg-type]
        unlocked = await run_in_threadpool(unlock_document, data, password)

    logger.info("Unlock successful")
    return _pdf_response(unlocked, "unlocked.pdf")


@app.post("/api/annotate")
async def annotate(
    file: Optional[UploadFile] = File(None),
    annotations: str = Form("[]"),
    root: Path = Depends(get_upload_root),
) -> Response:
    _require_upload(file, PDF_EXTENSIONS, PDF_CONTENT_TYPES, "PDF")

    try:
        parsed: Any = json.loads(annotations) if annotations else []
    except ValueError as exc:
        # JSONDecodeError, or an integer past the int string conversion limit.
        raise HTTPException(status_code=400, detail=f"Invalid annotations JSON: {exc}") from exc
    if not isinstance(parsed, list):
        raise HTTPException(status_code=400, detail="Annotations must be a JSON array")

    logger.info(f"Applying {len(parsed)} annotation(s)")
    with upload_workspace(root) as workspace:
        data = await _read_upload(file, workspace, PDF_EXTENSIONS)  # type: ignore[arg-type]
        outcome = await run_in_threadpool(run_annotation_pipeline, data, parsed)

    return _pdf_response(
        outcome.content,
        "annotated.pdf",
        headers={
            "X-Annotations-Applied": str(outcome.applied),
            "X-Annotations-Skipped": str(len(outcome.skipped)),
        },
    )
