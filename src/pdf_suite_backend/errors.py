"""
Exception hierarchy for document operations.

Only document-level failures are exceptions. Problems with a single
annotation are recorded as ``AnnotationSkipped`` entries and never raised.
"""

from __future__ import annotations


class PdfSuiteError(Exception):
    """Base class for all errors raised by the backend."""


class DocumentLoadError(PdfSuiteError):
    """The input bytes are not a readable PDF (corrupt, empty or encrypted)."""


class IncorrectPasswordError(DocumentLoadError):
    """An encrypted PDF could not be opened with the supplied password."""


class SerializationError(PdfSuiteError):
    """The document store failed to produce output bytes."""


class AnnotationError(PdfSuiteError):
    """
    The annotation pipeline could not produce a document.

    Always chained to the underlying ``DocumentLoadError`` or
    ``SerializationError``; available as ``cause``.
    """

    def __init__(self, message: str, cause: PdfSuiteError | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class PageRangeError(PdfSuiteError):
    """A page range selected no valid pages."""


class ConversionError(PdfSuiteError):
    """A Word document could not be read or rendered to PDF."""


class UploadTooLargeError(PdfSuiteError):
    """An uploaded file exceeded the configured size limit."""
