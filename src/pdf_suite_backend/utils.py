"""
Utility functions for file system operations and filename sanitization.

This module provides helper functions for:
- Sanitizing user-provided filenames before they touch the disk
- Ensuring directory creation
- Checking uploads against the accepted file types
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Optional

# Pattern to match characters that are not safe for filesystem paths
# Allows: alphanumeric characters, underscores, and hyphens
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9_-]+")

PDF_EXTENSIONS = (".pdf",)
PDF_CONTENT_TYPES = ("application/pdf",)
WORD_EXTENSIONS = (".docx",)
WORD_CONTENT_TYPES = ("application/vnd.openxmlformats-officedocument.wordprocessingml.document",)


def sanitize_label(label: str, fallback: str) -> str:
    """
    Generate a filesystem-safe label from user input.

    Args:
        label: The original label string to sanitize
        fallback: Default value to return if sanitization results in an empty string

    Returns:
        A filesystem-safe label or the fallback value

    Example:
        >>> sanitize_label("1-3, 5", "pages")
        "1-3-5"
        >>> sanitize_label("@#$", "pages")
        "pages"
    """
    cleaned = SANITIZE_PATTERN.sub("-", label.strip())
    cleaned = cleaned.strip("-_")
    return cleaned or fallback


def sanitize_filename(filename: str, allowed_suffixes: Iterable[str], fallback: str = "document") -> str:
    """
    Reduce an uploaded filename to a safe stem plus an allowed suffix.

    Directory components are dropped. The first allowed suffix is used when
    the original one is not accepted.
    """
    suffixes = [suffix.lower() for suffix in allowed_suffixes]
    path = Path(Path(filename).name)
    stem = sanitize_label(path.stem, fallback)
    suffix = path.suffix.lower()
    if suffix not in suffixes:
        suffix = suffixes[0]
    return f"{stem}{suffix}"


def ensure_directory(path: Path) -> Path:
    """
    Create a directory if it doesn't exist, including parent directories.

    Args:
        path: The directory path to create

    Returns:
        The same path object for chaining
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def matches_type(
    filename: Optional[str],
    content_type: Optional[str],
    extensions: Iterable[str],
    content_types: Iterable[str],
) -> bool:
    """True if either the filename suffix or the declared content type is accepted."""
    suffix = Path(filename or "").suffix.lower()
    return suffix in tuple(extensions) or (content_type or "").lower() in tuple(content_types)
