"""
Pytest configuration and fixtures for PDF Suite Backend tests.
"""

import io
import os
import shutil
import tempfile

import fitz
import pytest
from docx import Document
from fastapi.testclient import TestClient

# Set test environment variables before importing the app
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="pdf_suite_test_uploads_")
os.environ["LOG_LEVEL"] = "DEBUG"

from pdf_suite_backend.errors import DocumentLoadError, SerializationError
from pdf_suite_backend.geometry import PageGeometry
from pdf_suite_backend.main import app


class RecordingDocument:
    """Document handle that records draw calls instead of touching a PDF."""

    def __init__(self, page_sizes, fail_serialize=False):
        self.page_sizes = list(page_sizes)
        self.fail_serialize = fail_serialize
        self.calls = []
        self.serialize_calls = 0
        self.closed = False

    def page_count(self):
        return len(self.page_sizes)

    def page_geometry(self, index):
        if not 0 <= index < len(self.page_sizes):
            raise IndexError(index)
        width, height = self.page_sizes[index]
        return PageGeometry(width=width, height=height)

    def draw_filled_rect(self, page_index, x, y, width, height, color, opacity):
        self.calls.append(("rect", page_index, x, y, width, height, color, opacity))

    def draw_stroked_path(self, page_index, points, color, stroke_width, line_cap):
        self.calls.append(("path", page_index, list(points), color, stroke_width, line_cap))

    def serialize(self):
        self.serialize_calls += 1
        self.calls.append(("serialize",))
        if self.fail_serialize:
            raise SerializationError("Failed to write PDF: disk full")
        return b"%PDF-recorded"

    def close(self):
        self.closed = True


class RecordingStore:
    def __init__(self, document=None, load_error=None):
        self.document = document
        self.load_error = load_error
        self.loaded = []

    def load_document(self, data):
        self.loaded.append(data)
        if self.load_error:
            raise self.load_error
        return self.document


def build_pdf(page_count=2, size=(600, 800), **save_options):
    document = fitz.open()
    for number in range(page_count):
        page = document.new_page(width=size[0], height=size[1])
        page.insert_text((72, 72), f"Page {number + 1}", fontsize=12)
    data = document.tobytes(**save_options)
    document.close()
    return data


@pytest.fixture(scope="session", autouse=True)
def upload_dir():
    """Upload root used by the app; removed after the session."""
    path = os.environ["UPLOAD_DIR"]
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def sample_pdf():
    """Two 600x800 pages."""
    return build_pdf()


@pytest.fixture
def encrypted_pdf():
    return build_pdf(
        page_count=1,
        encryption=fitz.PDF_ENCRYPT_AES_256,
        user_pw="secret",
        owner_pw="owner-secret",
    )


@pytest.fixture
def recording_document():
    return RecordingDocument([(600, 800), (600, 800)])


@pytest.fixture
def recording_store(recording_document):
    return RecordingStore(recording_document)


@pytest.fixture
def failing_store():
    return RecordingStore(load_error=DocumentLoadError("Unable to read PDF: not a PDF"))


@pytest.fixture
def make_recording_store():
    def _make(page_sizes=((600, 800), (600, 800)), fail_serialize=False):
        return RecordingStore(RecordingDocument(page_sizes, fail_serialize=fail_serialize))

    return _make


@pytest.fixture
def sample_docx():
    """A Word document with a heading, two paragraphs and a table."""
    document = Document()
    document.add_heading("Quarterly Report", level=1)
    document.add_paragraph("Revenue grew in every region this quarter.")
    document.add_paragraph("Hiring continues in the support team.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Region"
    table.rows[0].cells[1].text = "North"

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def empty_docx():
    buffer = io.BytesIO()
    Document().save(buffer)
    return buffer.getvalue()
