"""Text normalisation shared by both extractors.

Pure functions with no I/O. Everything that ends up in a document's title or
content passes through here first.
"""

import os
import re

from doculink.models.document import MAX_CONTENT_LENGTH, MAX_TITLE_LENGTH

__all__ = [
    "DEFAULT_FILENAME",
    "MAX_CONTENT_LENGTH",
    "MAX_TITLE_LENGTH",
    "TRUNCATION_MARKER",
    "UNTITLED",
    "clean_content",
    "collapse_whitespace",
    "derive_title",
    "sanitize",
    "sanitize_filename",
    "truncate",
]

TRUNCATION_MARKER = "... [content truncated]"
UNTITLED = "Untitled Document"
DEFAULT_FILENAME = "document"

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_LINE_ENDINGS = re.compile(r"\r\n?")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_EXCESS_SPACES = re.compile(r"[ \t]{2,}")
_ANY_WHITESPACE = re.compile(r"\s+")
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def sanitize(text: str) -> str:
    """Normalise extracted text.

    Removes ASCII control characters (newlines and tabs survive), collapses
    three or more newlines to two, collapses runs of spaces/tabs to a single
    space and trims the result. Idempotent.

    Args:
        text: Raw extracted text.

    Returns:
        The normalised text.
    """
    if not text:
        return ""

    cleaned = _CONTROL_CHARS.sub("", text)
    cleaned = _LINE_ENDINGS.sub("\n", cleaned)
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
    cleaned = _EXCESS_SPACES.sub(" ", cleaned)
    return cleaned.strip()


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters and append the truncation marker.

    Text that already fits is returned unchanged.
    """
    if len(text) > max_length:
        return text[:max_length] + TRUNCATION_MARKER
    return text


def clean_content(text: str) -> str:
    """Sanitize and bound document content.

    The cut point leaves room for the marker so the stored content never
    exceeds MAX_CONTENT_LENGTH.
    """
    return truncate(sanitize(text), MAX_CONTENT_LENGTH - len(TRUNCATION_MARKER))


def derive_title(text: str, max_length: int = 100) -> str:
    """Use the first non-empty line of text as a title.

    Args:
        text: Content to take the title from.
        max_length: Longest title returned; longer lines end with "...".

    Returns:
        The derived title, or UNTITLED when text has no non-empty line.
    """
    for line in text.split("\n"):
        candidate = line.strip()
        if not candidate:
            continue
        if len(candidate) <= max_length:
            return candidate
        return candidate[: max_length - 3] + "..."
    return UNTITLED


def collapse_whitespace(text: str) -> str:
    """Fold all whitespace (newlines included) into single spaces."""
    return _ANY_WHITESPACE.sub(" ", text).strip()


def sanitize_filename(filename: str | None, max_length: int = 100) -> str:
    """Turn an uploaded file name into a safe name stem.

    Drops any directory part and the extension, replaces everything that is
    not alphanumeric, dash or underscore with underscores and caps the length.
    """
    if not filename:
        return DEFAULT_FILENAME

    stem, _ = os.path.splitext(os.path.basename(filename.replace("\\", "/")))
    safe = _UNSAFE_FILENAME_CHARS.sub("_", stem).strip("_")[:max_length]
    return safe or DEFAULT_FILENAME
