"""
Tests for whole-document operations and Word conversion.
"""

from datetime import datetime

import fitz
import pytest

from pdf_suite_backend.configuration import compression_options
from pdf_suite_backend.conversion import EMPTY_DOCUMENT_MESSAGE, build_html, convert_word_to_pdf, read_word_document
from pdf_suite_backend.errors import ConversionError, DocumentLoadError, IncorrectPasswordError, PageRangeError
from pdf_suite_backend.models import CompressionLevel
from pdf_suite_backend.operations import (
    compress_document,
    merge_documents,
    parse_page_range,
    resolve_compression_level,
    split_document,
    unlock_document,
)


def page_texts(data):
    with fitz.open(stream=data, filetype="pdf") as document:
        # Without TEXT_PRESERVE_LIGATURES, "ﬁ" is extracted as "fi".
        return [page.get_text(flags=fitz.TEXT_PRESERVE_WHITESPACE).strip() for page in document]


class TestParsePageRange:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1-3,5", [1, 2, 3, 5]),
            ("5,1-2", [1, 2, 5]),
            ("2,2,1-3", [1, 2, 3]),
            ("8-20", [8, 9, 10]),
            ("0-2", [1, 2]),
            (" 4 , 6 ", [4, 6]),
            ("3,abc,x-y,7", [3, 7]),
            ("11,2", [2]),
            ("1-3-5", [1, 2, 3]),
        ],
    )
    def test_ranges(self, value, expected):
        assert parse_page_range(value, 10) == expected

    @pytest.mark.parametrize("value", ["", "0", "11", "5-3", "abc", "-1", ",,"])
    def test_no_valid_pages(self, value):
        with pytest.raises(PageRangeError):
            parse_page_range(value, 10)


class TestMerge:
    def test_pages_are_concatenated_in_order(self, make_pdf):
        first = make_pdf(page_count=2)
        second = make_pdf(page_count=3, size=(300, 300))

        merged = merge_documents([first, second])

        assert page_texts(merged) == ["Page 1", "Page 2", "Page 1", "Page 2", "Page 3"]
        with fitz.open(stream=merged, filetype="pdf") as document:
            assert document[2].rect.width == pytest.approx(300)

    def test_corrupt_input_fails(self, sample_pdf):
        with pytest.raises(DocumentLoadError):
            merge_documents([sample_pdf, b"garbage"])


class TestSplit:
    def test_selected_pages_only(self, make_pdf):
        data = make_pdf(page_count=5)

        assert page_texts(split_document(data, "4,1-2")) == ["Page 1", "Page 2", "Page 4"]

    def test_invalid_range(self, sample_pdf):
        with pytest.raises(PageRangeError):
            split_document(sample_pdf, "7-9")


class TestCompress:
    @pytest.mark.parametrize("level", ["low", "medium", "high"])
    def test_levels_produce_a_readable_pdf(self, sample_pdf, level):
        result = compress_document(sample_pdf, level)

        assert result.original_size == len(sample_pdf)
        assert result.compressed_size == len(result.content)
        assert page_texts(result.content) == ["Page 1", "Page 2"]

    @pytest.mark.parametrize("level, expected", [("HIGH", CompressionLevel.HIGH), ("extreme", CompressionLevel.MEDIUM), (None, CompressionLevel.MEDIUM)])
    def test_level_resolution(self, level, expected):
        assert resolve_compression_level(level) is expected

    def test_unknown_level_uses_medium_options(self):
        assert compression_options("extreme") == compression_options("medium")

    def test_high_level_options(self):
        options = compression_options("high")

        assert options["garbage"] == 4
        assert options["deflate_images"] is True

    def test_reduction_percent(self, sample_pdf):
        result = compress_document(sample_pdf, "high")

        assert result.reduction_percent == round((1 - result.compressed_size / result.original_size) * 100, 1)


class TestUnlock:
    def test_correct_password_removes_encryption(self, encrypted_pdf):
        unlocked = unlock_document(encrypted_pdf, "secret")

        with fitz.open(stream=unlocked, filetype="pdf") as document:
            assert not document.needs_pass
            assert not document.is_encrypted
            assert document[0].get_text().strip() == "Page 1"

    def test_wrong_password(self, encrypted_pdf):
        with pytest.raises(IncorrectPasswordError):
            unlock_document(encrypted_pdf, "guess")

    def test_unencrypted_document_passes_through(self, sample_pdf):
        assert page_texts(unlock_document(sample_pdf, "anything")) == ["Page 1", "Page 2"]


class TestWordConversion:
    def test_reads_blocks_in_order(self, sample_docx):
        blocks, text = read_word_document(sample_docx)

        assert blocks[0] == "<h2>Quarterly Report</h2>"
        assert blocks[1] == "<p>Revenue grew in every region this quarter.</p>"
        assert blocks[-1].startswith("<table>")
        assert text == "Quarterly Report Revenue grew in every region this quarter. Hiring continues in the support team. Region North"

    def test_html_escapes_content(self):
        html = build_html(["<p>a &lt; b</p>"], "a < b", "R&D <draft>.docx", datetime(2024, 1, 2, 3, 4, 5))

        assert "Original file: R&amp;D &lt;draft&gt;.docx" in html
        assert "Conversion date: 2024-01-02 03:04:05" in html
        assert "Content length: 5 characters" in html

    def test_converted_pdf_contains_text(self, sample_docx):
        result = convert_word_to_pdf(sample_docx, "report.docx")

        text = " ".join(page_texts(result))
        assert "Converted Document" in text
        assert "Original file: report.docx" in text
        assert "Revenue grew in every region this quarter." in text

    def test_empty_document_gets_placeholder(self, empty_docx):
        result = convert_word_to_pdf(empty_docx, "empty.docx")

        text = " ".join(" ".join(page_texts(result)).split())
        assert "No readable text content found." in text
        assert EMPTY_DOCUMENT_MESSAGE.startswith("Document converted from Word to PDF.")

    def test_custom_renderer_receives_html(self, sample_docx):
        class CapturingRenderer:
            html = None

            def render(self, html):
                CapturingRenderer.html = html
                return b"%PDF-captured"

        result = convert_word_to_pdf(sample_docx, "report.docx", renderer=CapturingRenderer())

        assert result == b"%PDF-captured"
        assert "<h1 class=\"title\">Converted Document</h1>" in CapturingRenderer.html
        assert "<td>North</td>" in CapturingRenderer.html

    def test_not_a_word_document(self):
        with pytest.raises(ConversionError):
            convert_word_to_pdf(b"plain text", "notes.docx")
