"""
Word (.docx) to PDF conversion.

The document body is read with python-docx in reading order (paragraphs,
headings and tables), turned into a small HTML page with a header block
describing the conversion, and handed to an ``HtmlRenderer``.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from datetime import datetime
from html import escape
from typing import List, Optional

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.table import Table
from docx.text.paragraph import Paragraph

from .errors import ConversionError
from .rendering import HtmlRenderer, StoryRenderer

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT_MESSAGE = (
    "Document converted from Word to PDF. No readable text content found. "
    "This may be due to complex formatting, images, or tables in the original document."
)

_WHITESPACE = re.compile(r"\s+")
_HEADING_STYLE = re.compile(r"^heading\s*(\d)$", re.IGNORECASE)


def _heading_level(paragraph: Paragraph) -> Optional[int]:
    style_name = (paragraph.style.name if paragraph.style is not None else "") or ""
    if style_name.lower() == "title":
        return 1
    match = _HEADING_STYLE.match(style_name.strip())
    if match:
        return min(int(match.group(1)) + 1, 6)
    return None


def _paragraph_html(paragraph: Paragraph) -> Optional[str]:
    text = paragraph.text.strip()
    if not text:
        return None
    level = _heading_level(paragraph)
    if level:
        return f"<h{level}>{escape(text)}</h{level}>"
    return f"<p>{escape(text)}</p>"


def _table_html(table: Table) -> Optional[str]:
    rows = []
    for row in table.rows:
        cells = "".join(f"<td>{escape(cell.text.strip())}</td>" for cell in row.cells)
        rows.append(f"<tr>{cells}</tr>")
    if not rows:
        return None
    return f"<table>{''.join(rows)}</table>"


def _table_text(table: Table) -> str:
    return " ".join(cell.text for row in table.rows for cell in row.cells)


def read_word_document(data: bytes) -> tuple[List[str], str]:
    """
    Read a .docx payload.

    Returns:
        The HTML fragments for each body block in document order, and the
        plain text of the whole body with whitespace collapsed.

    Raises:
        ConversionError: If the payload is not a readable Word document.
    """
    try:
        document = Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as exc:
        raise ConversionError(f"Unable to read Word document: {exc}") from exc

    blocks: List[str] = []
    texts: List[str] = []
    for block in document.iter_inner_content():
        if isinstance(block, Paragraph):
            fragment = _paragraph_html(block)
            texts.append(block.text)
        else:
            fragment = _table_html(block)
            texts.append(_table_text(block))
        if fragment:
            blocks.append(fragment)

    text = _WHITESPACE.sub(" ", " ".join(texts)).strip()
    return blocks, text


def build_html(blocks: List[str], text: str, original_filename: str, converted_at: datetime) -> str:
    body = "\n".join(blocks) if text else f"<p>{escape(EMPTY_DOCUMENT_MESSAGE)}</p>"
    content_length = len(text) if text else len(EMPTY_DOCUMENT_MESSAGE)
    return (
        "<html><body>\n"
        '<h1 class="title">Converted Document</h1>\n'
        f'<p class="meta">Original file: {escape(original_filename)}</p>\n'
        f'<p class="meta">Conversion date: {converted_at:%Y-%m-%d %H:%M:%S}</p>\n'
        f'<p class="meta">Content length: {content_length} characters</p>\n'
        "<hr/>\n"
        f"{body}\n"
        "</body></html>"
    )


def convert_word_to_pdf(
    data: bytes,
    original_filename: str,
    renderer: Optional[HtmlRenderer] = None,
    converted_at: Optional[datetime] = None,
) -> bytes:
    renderer = renderer or StoryRenderer()
    blocks, text = read_word_document(data)
    logger.info(f"Extracted text length: {len(text)} characters from {original_filename}")
    if not text:
        logger.warning(f"No readable text found in {original_filename}")

    html = build_html(blocks, text, original_filename, converted_at or datetime.now())
    return renderer.render(html)
