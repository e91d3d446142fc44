from __future__ import annotations

import io
import logging
from typing import Protocol

import fitz

from .errors import ConversionError

logger = logging.getLogger(__name__)

DEFAULT_CSS = """
body { font-family: sans-serif; font-size: 12pt; line-height: 1.3; }
h1.title { text-align: center; font-size: 20pt; margin-bottom: 6pt; }
p.meta { text-align: center; font-size: 10pt; margin: 0; }
p { text-indent: 20pt; margin: 0 0 6pt 0; }
td { border: 1px solid black; padding: 2pt 4pt; font-size: 10pt; }
"""


class HtmlRenderer(Protocol):
    def render(self, html: str) -> bytes:
        """Lay out ``html`` on as many pages as needed and return PDF bytes."""


class StoryRenderer:
    """Renders HTML with MuPDF's built-in layout engine (``fitz.Story``)."""

    def __init__(self, paper_size: str = "letter", margin: float = 50.0, user_css: str = DEFAULT_CSS) -> None:
        self.paper_size = paper_size
        self.margin = margin
        self.user_css = user_css

    def render(self, html: str) -> bytes:
        mediabox = fitz.paper_rect(self.paper_size)
        where = mediabox + (self.margin, self.margin, -self.margin, -self.margin)
        buffer = io.BytesIO()

        try:
            story = fitz.Story(html=html, user_css=self.user_css)
            writer = fitz.DocumentWriter(buffer)
            pages = 0
            more = 1
            while more:
                device = writer.begin_page(mediabox)
                more, _ = story.place(where)
                story.draw(device)
                writer.end_page()
                pages += 1
            writer.close()
        except (RuntimeError, ValueError) as exc:
            raise ConversionError(f"PDF generation failed: {exc}") from exc

        logger.info(f"Rendered HTML to {pages} page(s)")
        return buffer.getvalue()
