import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from doculink.models.document import Client, Document, DocumentType
from doculink.storage.repositories import Page

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SUMMARY_CONTENT_LENGTH = 200


class ProcessWebRequest(BaseModel):
    """Request payload for scraping a web page into a document.

    Attributes:
        client_id: Owning client.
        url: Page URL; a missing scheme defaults to https.
    """

    client_id: int = Field(..., description="ID of the client the document belongs to")
    url: str = Field(..., min_length=1, description="URL of the page to scrape")

    @field_validator("url", mode="before")
    @classmethod
    def strip_url(cls, v: Any) -> Any:
        """Strip whitespace from the URL before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class DocumentResponse(BaseModel):
    """A stored document as returned by the API.

    Attributes:
        id: Document identifier.
        client_id: Owning client.
        title: Document title.
        content: Sanitized text content.
        document_type: "pdf" or "web".
        source_url: Page URL for web documents, otherwise null.
        file_path: Stored file path for PDF documents, otherwise null.
        processed_at: When extraction finished.
        created_at: When the document was stored.
    """

    id: int
    client_id: int
    title: str
    content: str
    document_type: DocumentType
    source_url: str | None = None
    file_path: str | None = None
    processed_at: datetime
    created_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            client_id=document.client_id,
            title=document.title,
            content=document.content,
            document_type=document.document_type,
            source_url=document.source_url,
            file_path=document.file_path,
            processed_at=document.processed_at,
            created_at=document.created_at,
        )


class DocumentSummary(BaseModel):
    """Document listing entry with a content preview instead of the full text."""

    id: int
    client_id: int
    title: str
    document_type: DocumentType
    source_url: str | None = None
    file_path: str | None = None
    content_preview: str = Field(..., description="First characters of the content")
    content_length: int = Field(..., ge=0)
    processed_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummary":
        preview = document.content[:SUMMARY_CONTENT_LENGTH]
        if len(document.content) > SUMMARY_CONTENT_LENGTH:
            preview += "..."
        return cls(
            id=document.id,
            client_id=document.client_id,
            title=document.title,
            document_type=document.document_type,
            source_url=document.source_url,
            file_path=document.file_path,
            content_preview=preview,
            content_length=len(document.content),
            processed_at=document.processed_at,
        )


class PaginatedDocuments(BaseModel):
    """One page of document summaries."""

    items: list[DocumentSummary]
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)

    @classmethod
    def from_page(cls, page: Page[Document]) -> "PaginatedDocuments":
        return cls(
            items=[DocumentSummary.from_document(document) for document in page.items],
            page=page.page,
            limit=page.limit,
            total=page.total,
            total_pages=page.total_pages,
        )


class DocumentStatistics(BaseModel):
    """Document counts, overall and per type."""

    total_documents: int = Field(..., ge=0)
    pdf_documents: int = Field(..., ge=0)
    web_documents: int = Field(..., ge=0)


class ProcessingHealth(BaseModel):
    """Which extractors are wired in, plus their settings.

    Attributes:
        status: "healthy" when every extractor is available, else "degraded".
        services: Availability per extractor.
        pdf: PDF extractor settings, when available.
        web: Web scraper settings, when available.
    """

    status: str
    services: dict[str, bool]
    pdf: dict[str, Any] | None = None
    web: dict[str, Any] | None = None


class ClientCreate(BaseModel):
    """Request payload for creating a client."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_value(cls, v: Any) -> Any:
        """Strip whitespace before validation."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Require something shaped like an e-mail address."""
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v.lower()


class ClientResponse(BaseModel):
    """A client as returned by the API."""

    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_client(cls, client: Client) -> "ClientResponse":
        return cls.model_validate(client.model_dump())


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint.

    Attributes:
        detail: Human readable message.
        reason: Machine readable failure code.
        violations: Every broken business rule, for business rule failures.
    """

    detail: str
    reason: str | None = None
    violations: list[str] = Field(default_factory=list)
