"""
Document store: load, inspect, draw on and serialize PDF documents.

``DocumentStore`` and ``DocumentHandle`` describe the capability the
annotation pipeline needs; ``PyMuPdfStore`` provides it on top of PyMuPDF.
Drawing calls take page-space coordinates (origin bottom-left) and are
converted to PyMuPDF's top-left system here, then derotated, since shapes
are drawn in unrotated page space while geometry reports the visible page.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

import fitz

from .errors import DocumentLoadError, IncorrectPasswordError, SerializationError
from .geometry import PageGeometry
from .models import Color, LineCap, PagePoint

logger = logging.getLogger(__name__)

DEFAULT_SAVE_OPTIONS = {"garbage": 3, "deflate": True}


class DocumentHandle(Protocol):
    """A loaded document that can be measured, drawn on and written out."""

    def page_count(self) -> int:
        ...

    def page_geometry(self, index: int) -> PageGeometry:
        """Raises IndexError for pages outside ``range(page_count())``."""

    def draw_filled_rect(
        self,
        page_index: int,
        x: float,
        y: float,
        width: float,
        height: float,
        color: Color,
        opacity: float,
    ) -> None:
        ...

    def draw_stroked_path(
        self,
        page_index: int,
        points: Sequence[PagePoint],
        color: Color,
        stroke_width: float,
        line_cap: LineCap,
    ) -> None:
        ...

    def serialize(self) -> bytes:
        ...

    def close(self) -> None:
        ...


class DocumentStore(Protocol):
    def load_document(self, data: bytes) -> DocumentHandle:
        ...


class PyMuPdfDocument:
    """``DocumentHandle`` backed by a ``fitz.Document``."""

    def __init__(self, document: fitz.Document) -> None:
        self.document = document

    def __enter__(self) -> "PyMuPdfDocument":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def page_count(self) -> int:
        return self.document.page_count

    def _page(self, index: int) -> fitz.Page:
        if not 0 <= index < self.document.page_count:
            raise IndexError(f"Page index {index} out of range (document has {self.document.page_count} pages)")
        return self.document[index]

    def page_geometry(self, index: int) -> PageGeometry:
        rect = self._page(index).rect
        return PageGeometry(width=rect.width, height=rect.height)

    def draw_filled_rect(
        self,
        page_index: int,
        x: float,
        y: float,
        width: float,
        height: float,
        color: Color,
        opacity: float,
    ) -> None:
        page = self._page(page_index)
        page_height = page.rect.height
        rect = fitz.Rect(x, page_height - (y + height), x + width, page_height - y) * page.derotation_matrix

        shape = page.new_shape()
        shape.draw_rect(rect)
        shape.finish(color=None, fill=color, fill_opacity=opacity)
        shape.commit()

    def draw_stroked_path(
        self,
        page_index: int,
        points: Sequence[PagePoint],
        color: Color,
        stroke_width: float,
        line_cap: LineCap,
    ) -> None:
        page = self._page(page_index)
        page_height = page.rect.height
        path = [fitz.Point(x, page_height - y) * page.derotation_matrix for x, y in points]

        shape = page.new_shape()
        shape.draw_polyline(path)
        shape.finish(
            color=color,
            fill=None,
            width=stroke_width,
            lineCap=int(line_cap),
            lineJoin=int(line_cap),
            closePath=False,
        )
        shape.commit()

    def serialize(self, **options: Any) -> bytes:
        save_options = {**DEFAULT_SAVE_OPTIONS, **options}
        try:
            return self.document.tobytes(**save_options)
        except (RuntimeError, ValueError) as exc:
            raise SerializationError(f"Failed to write PDF: {exc}") from exc

    def close(self) -> None:
        if not self.document.is_closed:
            self.document.close()


class PyMuPdfStore:
    """Opens PDF bytes with PyMuPDF."""

    def load_document(self, data: bytes, password: Optional[str] = None) -> PyMuPdfDocument:
        """
        Open ``data`` as a PDF.

        Encrypted documents need ``password``; without one they are rejected
        with ``DocumentLoadError``, with a wrong one ``IncorrectPasswordError``.
        """
        if not data:
            raise DocumentLoadError("Uploaded file is empty")

        try:
            document = fitz.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as exc:
            raise DocumentLoadError(f"Unable to read PDF: {exc}") from exc

        if document.needs_pass:
            if password is None:
                document.close()
                raise DocumentLoadError("PDF is password protected")
            if not document.authenticate(password):
                document.close()
                raise IncorrectPasswordError("Incorrect password or unable to unlock")
            logger.info("Authenticated encrypted PDF")

        return PyMuPdfDocument(document)

    def new_document(self) -> PyMuPdfDocument:
        return PyMuPdfDocument(fitz.open())
