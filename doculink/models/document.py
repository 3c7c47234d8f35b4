"""Document domain model and the business rules applied before persistence.

A document's origin is a tagged union: a PDF document always carries a
file path and never a source URL, a web document the other way round. The
pairing is enforced by the type rather than by two optional fields.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

MAX_CONTENT_LENGTH = 1_000_000
MAX_TITLE_LENGTH = 500


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


# SQLite drops the offset; stored timestamps are always UTC.
UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class DocumentType(str, Enum):
    """Kind of source a document was extracted from."""

    PDF = "pdf"
    WEB = "web"


class PDFSource(BaseModel):
    """Origin of a document extracted from an uploaded PDF.

    Attributes:
        file_path: Location of the stored PDF, relative to the storage root.
    """

    model_config = ConfigDict(frozen=True)

    document_type: Literal[DocumentType.PDF] = DocumentType.PDF
    file_path: str


class WebSource(BaseModel):
    """Origin of a document scraped from a web page.

    Attributes:
        source_url: Normalized URL the page was fetched from.
    """

    model_config = ConfigDict(frozen=True)

    document_type: Literal[DocumentType.WEB] = DocumentType.WEB
    source_url: str


DocumentSource = Annotated[PDFSource | WebSource, Field(discriminator="document_type")]


class ExtractedContent(BaseModel):
    """Uniform output of both extractors."""

    title: str
    content: str
    source: DocumentSource


class NewDocument(BaseModel):
    """Document fields ready to be persisted (no id or timestamps yet)."""

    client_id: int
    title: str
    content: str
    source: DocumentSource

    @classmethod
    def pdf(cls, client_id: int, title: str, content: str, file_path: str) -> "NewDocument":
        return cls(
            client_id=client_id,
            title=title.strip(),
            content=content,
            source=PDFSource(file_path=file_path.strip()),
        )

    @classmethod
    def web(cls, client_id: int, title: str, content: str, source_url: str) -> "NewDocument":
        return cls(
            client_id=client_id,
            title=title.strip(),
            content=content,
            source=WebSource(source_url=source_url.strip()),
        )

    @property
    def document_type(self) -> DocumentType:
        return self.source.document_type


class Document(BaseModel):
    """A persisted document.

    Attributes:
        id: Identifier assigned by the repository.
        client_id: Owning client.
        title: Bounded, non-empty title.
        content: Sanitized text content.
        source: Tagged origin (PDF file or web page).
        processed_at: When extraction finished.
        created_at: When the row was created.
    """

    id: int
    client_id: int
    title: str
    content: str
    source: DocumentSource
    processed_at: UTCDateTime
    created_at: UTCDateTime

    @property
    def document_type(self) -> DocumentType:
        return self.source.document_type

    @property
    def file_path(self) -> str | None:
        return self.source.file_path if isinstance(self.source, PDFSource) else None

    @property
    def source_url(self) -> str | None:
        return self.source.source_url if isinstance(self.source, WebSource) else None

    @classmethod
    def from_row(cls, row: Any) -> "Document":
        """Build a Document from a flat storage row.

        Args:
            row: Any object exposing the documents table columns as attributes.

        Returns:
            The domain document.

        Raises:
            ValueError: If the row's type and path/URL columns disagree.
        """
        document_type = DocumentType(row.document_type)
        source: PDFSource | WebSource
        if document_type is DocumentType.PDF:
            if not row.file_path or row.source_url:
                raise ValueError(f"Document {row.id}: PDF rows need a file path and no source URL")
            source = PDFSource(file_path=row.file_path)
        else:
            if not row.source_url or row.file_path:
                raise ValueError(f"Document {row.id}: web rows need a source URL and no file path")
            source = WebSource(source_url=row.source_url)

        return cls(
            id=row.id,
            client_id=row.client_id,
            title=row.title,
            content=row.content,
            source=source,
            processed_at=row.processed_at,
            created_at=row.created_at,
        )


class Client(BaseModel):
    """A client that documents belong to."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    created_at: UTCDateTime
    updated_at: UTCDateTime


def validate_business_rules(document: NewDocument) -> list[str]:
    """Check a document against the rules it must satisfy before persistence.

    Every violated rule is reported, not just the first one.

    Returns:
        Human readable violations; empty when the document is valid.
    """
    errors: list[str] = []

    source = document.source
    if isinstance(source, PDFSource) and not source.file_path.strip():
        errors.append("PDF documents must have a file path")
    if isinstance(source, WebSource) and not source.source_url.strip():
        errors.append("Web documents must have a source URL")

    if len(document.content) == 0:
        errors.append("Document content cannot be empty")
    if len(document.content) > MAX_CONTENT_LENGTH:
        errors.append("Document content exceeds maximum length")

    if len(document.title.strip()) == 0:
        errors.append("Document title cannot be empty")
    if len(document.title) > MAX_TITLE_LENGTH:
        errors.append(f"Document title exceeds maximum length of {MAX_TITLE_LENGTH} characters")

    return errors
