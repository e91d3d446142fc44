"""
Temporary storage for uploaded files.

Each request gets its own scratch directory under the configured upload
root. The directory and everything written to it is removed when the
request finishes, whether the operation succeeded or not.
"""

from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator
from uuid import uuid4

from fastapi import UploadFile

from .errors import UploadTooLargeError
from .utils import ensure_directory, sanitize_filename

logger = logging.getLogger(__name__)


@contextmanager
def upload_workspace(root: Path) -> Iterator[Path]:
    workspace = ensure_directory(root / uuid4().hex)
    try:
        yield workspace
    finally:
        try:
            shutil.rmtree(workspace)
        except OSError as exc:
            logger.error(f"Error deleting upload workspace {workspace}: {exc}")


async def store_upload(
    file: UploadFile,
    directory: Path,
    allowed_suffixes: Iterable[str],
    max_bytes: int,
    chunk_size: int = 1024 * 1024,
) -> Path:
    """
    Stream ``file`` into ``directory`` under a sanitized name.

    Files keep their upload order through a numeric prefix, so several
    uploads with the same name do not overwrite each other.

    Raises:
        UploadTooLargeError: If the upload grows beyond ``max_bytes``.
    """
    existing = sum(1 for _ in directory.iterdir())
    filename = sanitize_filename(file.filename or "document", allowed_suffixes)
    destination = directory / f"{existing:03d}-{filename}"

    written = 0
    with destination.open("wb") as buffer:
        while chunk := await file.read(chunk_size):
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLargeError(f"File {file.filename} exceeds the upload limit of {max_bytes} bytes")
            buffer.write(chunk)
    await file.close()

    logger.debug(f"Stored upload {file.filename} ({written} bytes) at {destination}")
    return destination
