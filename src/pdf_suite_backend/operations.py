"""
Whole-document PDF operations: merge, split, compress and unlock.

Every function takes and returns raw bytes so the HTTP layer only deals
with uploads and responses. Documents are opened through ``PyMuPdfStore``
and always closed before returning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import fitz

from .configuration import compression_options
from .document_store import PyMuPdfStore
from .errors import PageRangeError
from .models import CompressionLevel

logger = logging.getLogger(__name__)


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_page_range(page_range: str, page_count: int) -> List[int]:
    """
    Expand a range string such as ``"1-3,5"`` into sorted 1-based page numbers.

    ``a-b`` parts are clamped to ``page_count``; single pages outside the
    document, non-positive numbers and unparseable parts are ignored.
    Duplicates are removed.

    Raises:
        PageRangeError: If no valid page is selected.
    """
    pages: set[int] = set()
    for part in page_range.split(","):
        cleaned = part.strip()
        if not cleaned:
            continue
        if "-" in cleaned:
            # "1-3-5" reads as 1-3.
            start_text, end_text = cleaned.split("-")[:2]
            start, end = _to_int(start_text), _to_int(end_text)
            if start is None or end is None:
                continue
            pages.update(page for page in range(max(start, 1), min(end, page_count) + 1))
        else:
            page = _to_int(cleaned)
            if page is not None and 1 <= page <= page_count:
                pages.add(page)

    if not pages:
        raise PageRangeError("No valid pages in range")
    return sorted(pages)


def merge_documents(documents: Sequence[bytes], store: Optional[PyMuPdfStore] = None) -> bytes:
    """Concatenate every page of ``documents`` in the order given."""
    store = store or PyMuPdfStore()
    with store.new_document() as merged:
        for index, data in enumerate(documents, start=1):
            with store.load_document(data) as source:
                merged.document.insert_pdf(source.document)
                logger.info(f"Merged document {index}/{len(documents)} ({source.page_count()} pages)")
        return merged.serialize()


def split_document(data: bytes, page_range: str, store: Optional[PyMuPdfStore] = None) -> bytes:
    """Extract the pages selected by ``page_range`` into a new document."""
    store = store or PyMuPdfStore()
    with store.load_document(data) as source:
        total_pages = source.page_count()
        pages = parse_page_range(page_range, total_pages)
        logger.info(f"Extracting pages {', '.join(map(str, pages))} of {total_pages}")

        with store.new_document() as extracted:
            for page in pages:
                extracted.document.insert_pdf(source.document, from_page=page - 1, to_page=page - 1)
            return extracted.serialize()


@dataclass
class CompressionResult:
    content: bytes
    original_size: int
    compressed_size: int

    @property
    def reduction_percent(self) -> float:
        if not self.original_size:
            return 0.0
        return round((1 - self.compressed_size / self.original_size) * 100, 1)


def resolve_compression_level(level: Optional[str]) -> CompressionLevel:
    try:
        return CompressionLevel((level or "").strip().lower())
    except ValueError:
        return CompressionLevel.MEDIUM


def compress_document(data: bytes, level: Optional[str], store: Optional[PyMuPdfStore] = None) -> CompressionResult:
    """Re-save ``data`` with the PyMuPDF options configured for ``level``."""
    store = store or PyMuPdfStore()
    resolved = resolve_compression_level(level)
    options = compression_options(resolved.value)

    with store.load_document(data) as document:
        content = document.serialize(**options)

    result = CompressionResult(content=content, original_size=len(data), compressed_size=len(content))
    logger.info(f"Compressed ({resolved.value}) {result.original_size}B -> {result.compressed_size}B, {result.reduction_percent}% reduction")
    return result


def unlock_document(data: bytes, password: str, store: Optional[PyMuPdfStore] = None) -> bytes:
    """
    Decrypt ``data`` with ``password`` and return it without encryption.

    A document that is not encrypted is re-saved as is.
    """
    store = store or PyMuPdfStore()
    with store.load_document(data, password=password) as document:
        return document.serialize(encryption=fitz.PDF_ENCRYPT_NONE)
