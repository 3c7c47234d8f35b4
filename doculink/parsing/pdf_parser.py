"""PDF extraction using pypdf.

Validates uploaded bytes, extracts text and metadata, resolves a title and
stores the original file. Every failure surfaces as one of the typed errors
in doculink.errors.
"""

import asyncio
import io
import logging
import random
import string
import time

from pydantic import BaseModel, Field
from pypdf import PasswordType, PdfReader
from pypdf.errors import FileNotDecryptedError, PdfReadError

from doculink.errors import ProcessingError, ValidationError
from doculink.models.document import ExtractedContent, PDFSource
from doculink.parsing.sanitizer import (
    MAX_TITLE_LENGTH,
    clean_content,
    collapse_whitespace,
    sanitize,
    sanitize_filename,
)
from doculink.storage.files import FileStorage

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
PDF_MAGIC_BYTES = b"%PDF-"
PDF_MEDIA_TYPE = "application/pdf"
MIN_CONTENT_TITLE_LENGTH = 5
MAX_CONTENT_TITLE_LENGTH = 200


class PDFContent(BaseModel):
    """Extracted content from a PDF file.

    Attributes:
        text: Combined text content from all pages.
        pages: Total number of pages in the document.
        metadata: Document metadata (title, author, etc.).
    """

    text: str
    pages: int = Field(ge=0)
    metadata: dict[str, str | None]


def _validate_pdf_bytes(file_content: bytes, max_size: int = MAX_FILE_SIZE) -> None:
    """Validate PDF file content before parsing.

    Args:
        file_content: Raw bytes of the PDF file.
        max_size: Largest accepted size in bytes.

    Raises:
        ValidationError: If validation fails.
    """
    if not file_content:
        raise ValidationError("PDF file is empty", reason="empty")

    if len(file_content) > max_size:
        size_mb = len(file_content) / (1024 * 1024)
        limit_mb = max_size / (1024 * 1024)
        raise ValidationError(
            f"File size ({size_mb:.1f}MB) exceeds maximum allowed ({limit_mb:.0f}MB)",
            reason="too_large",
        )

    if not file_content.startswith(PDF_MAGIC_BYTES):
        raise ValidationError("Invalid PDF: file does not start with PDF header", reason="corrupted")


def _extract_metadata(reader: PdfReader) -> dict[str, str | None]:
    """Extract metadata from PDF reader.

    Args:
        reader: Initialized PdfReader instance.

    Returns:
        Dictionary of metadata fields.
    """
    metadata: dict[str, str | None] = {}

    try:
        if reader.metadata:
            # Standard PDF metadata fields
            metadata["title"] = reader.metadata.get("/Title")
            metadata["author"] = reader.metadata.get("/Author")
            metadata["subject"] = reader.metadata.get("/Subject")
            metadata["creator"] = reader.metadata.get("/Creator")
            metadata["producer"] = reader.metadata.get("/Producer")

            creation_date = reader.metadata.get("/CreationDate")
            if creation_date:
                metadata["creation_date"] = str(creation_date)
    except Exception as e:
        logger.warning(f"Failed to extract some metadata: {e}")

    return {k: str(v) for k, v in metadata.items() if v is not None}


def _open_reader(file_content: bytes) -> PdfReader:
    try:
        reader = PdfReader(io.BytesIO(file_content))
    except FileNotDecryptedError as e:
        raise ValidationError("Password-protected PDFs are not supported", reason="protected", cause=e) from e
    except PdfReadError as e:
        raise ValidationError(f"Corrupt or invalid PDF: {e}", reason="corrupted", cause=e) from e
    except Exception as e:
        raise ValidationError(f"Failed to read PDF: {e}", reason="corrupted", cause=e) from e

    if reader.is_encrypted:
        try:
            unlocked = reader.decrypt("") != PasswordType.NOT_DECRYPTED
        except Exception as e:
            raise ValidationError("Encrypted PDFs are not supported", reason="protected", cause=e) from e
        if not unlocked:
            raise ValidationError("Password-protected PDFs are not supported", reason="protected")

    return reader


def parse_pdf(file_content: bytes, max_size: int = MAX_FILE_SIZE) -> PDFContent:
    """Parse a PDF file and extract its text content.

    Args:
        file_content: Raw bytes of the PDF file.
        max_size: Largest accepted size in bytes.

    Returns:
        PDFContent with extracted text, page count, and metadata.

    Raises:
        ValidationError: If the file is empty, too large, corrupt or protected.
    """
    _validate_pdf_bytes(file_content, max_size)

    reader = _open_reader(file_content)

    try:
        pages = len(reader.pages)
    except FileNotDecryptedError as e:
        raise ValidationError("Password-protected PDFs are not supported", reason="protected", cause=e) from e
    except Exception as e:
        raise ValidationError(f"Corrupt or invalid PDF: {e}", reason="corrupted", cause=e) from e

    # Extract text from all pages
    text_parts: list[str] = []
    for i, page in enumerate(reader.pages):
        try:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        except Exception as e:
            logger.warning(f"Failed to extract text from page {i + 1}: {e}")
            continue

    text = "\n\n".join(text_parts)

    if not text.strip():
        logger.warning("PDF contains no extractable text (may be scanned/image-based)")

    return PDFContent(
        text=text,
        pages=pages,
        metadata=_extract_metadata(reader),
    )


def title_from_content(text: str) -> str | None:
    """Use the first non-empty line as a title if it has a reasonable length."""
    for line in sanitize(text).split("\n"):
        candidate = line.strip()
        if candidate:
            if MIN_CONTENT_TITLE_LENGTH <= len(candidate) <= MAX_CONTENT_TITLE_LENGTH:
                return candidate
            return None
    return None


def resolve_title(pdf: PDFContent, original_filename: str | None) -> str:
    """Pick a title: metadata first, then the first content line, then the file name."""
    metadata_title = collapse_whitespace(sanitize(pdf.metadata.get("title") or ""))
    if 0 < len(metadata_title) <= MAX_TITLE_LENGTH:
        return metadata_title

    content_title = title_from_content(pdf.text)
    if content_title:
        return content_title

    return sanitize_filename(original_filename)


def generate_filename(original_filename: str | None) -> str:
    """Build a collision-resistant name: epoch millis, random suffix, sanitized name."""
    timestamp = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{timestamp}_{suffix}_{sanitize_filename(original_filename)}.pdf"


class PDFExtractor:
    """Turns uploaded PDF bytes into a title, cleaned content and a stored file."""

    def __init__(
        self,
        storage: FileStorage,
        upload_dir: str = "uploads",
        max_file_size: int = MAX_FILE_SIZE,
    ) -> None:
        self._storage = storage
        self._upload_dir = upload_dir.strip("/")
        self._max_file_size = max_file_size

    @property
    def max_file_size(self) -> int:
        return self._max_file_size

    async def extract(self, file_content: bytes, original_filename: str | None) -> ExtractedContent:
        """Extract title and content from a PDF and store the original bytes.

        Args:
            file_content: Raw bytes of the uploaded PDF.
            original_filename: Name the client uploaded the file under.

        Returns:
            ExtractedContent whose source holds the stored file path.

        Raises:
            ValidationError: Empty, oversized, corrupt or protected PDF.
            ProcessingError: No extractable text, or the file could not be stored.
        """
        try:
            pdf = await asyncio.to_thread(parse_pdf, file_content, self._max_file_size)
        except ValidationError as e:
            logger.warning(f"Rejected PDF {original_filename!r}: {e.message}")
            raise
        except Exception as e:
            logger.error(f"PDF extraction error for {original_filename!r}: {e}")
            raise ProcessingError("Failed to extract content from PDF", cause=e) from e

        title = resolve_title(pdf, original_filename)

        content = clean_content(pdf.text)
        if not content:
            raise ProcessingError("No text content found in PDF", reason="no_content")

        file_path = await self._store(file_content, original_filename)

        return ExtractedContent(
            title=title,
            content=content,
            source=PDFSource(file_path=file_path),
        )

    async def validate(self, file_content: bytes) -> bool:
        """Cheap structural check. Never raises.

        Returns:
            True if the bytes look like a PDF and a parse yields text or metadata.
        """
        if not file_content or len(file_content) > self._max_file_size:
            return False
        if not file_content.startswith(PDF_MAGIC_BYTES):
            return False

        try:
            pdf = await asyncio.to_thread(parse_pdf, file_content, self._max_file_size)
        except Exception as e:
            logger.debug(f"PDF validation failed: {e}")
            return False

        return bool(pdf.text.strip() or pdf.metadata)

    async def _store(self, file_content: bytes, original_filename: str | None) -> str:
        relative_path = f"{self._upload_dir}/{generate_filename(original_filename)}"
        try:
            return await self._storage.write(relative_path, file_content)
        except Exception as e:
            logger.error(f"File save error: {e}")
            raise ProcessingError("Failed to save PDF file", reason="storage", cause=e) from e

    def service_info(self) -> dict[str, object]:
        return {
            "max_file_size": self._max_file_size,
            "allowed_media_types": [PDF_MEDIA_TYPE],
            "upload_dir": self._upload_dir,
        }
