"""Document business service: coordinates extraction and persistence.

Both entry points follow the same path:

    1. Check the matching extractor is wired in.
    2. Validate the input shape.
    3. Resolve the client (fails fast, before any extraction I/O).
    4. Extract, sanitize and check business rules.
    5. Persist.

Typed failures (ValidationError, NotFoundError, ProcessingError) pass
through unchanged; anything else is wrapped in ProcessingError with the
original exception attached.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

from doculink.errors import DatabaseError, NotFoundError, ProcessingError, ValidationError
from doculink.models.document import (
    Client,
    Document,
    DocumentType,
    ExtractedContent,
    NewDocument,
    PDFSource,
    validate_business_rules,
)
from doculink.parsing.pdf_parser import PDF_MEDIA_TYPE
from doculink.parsing.sanitizer import derive_title, sanitize
from doculink.parsing.web_scraper import check_url_format
from doculink.services.client_service import ensure_positive_id
from doculink.storage.repositories import Page

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TYPED_FAILURES = (ValidationError, NotFoundError, ProcessingError)


class ClientLookup(Protocol):
    async def validate_client_exists(self, client_id: int) -> Client: ...


class DocumentStore(Protocol):
    async def create(self, document: NewDocument) -> Document: ...

    async def find_by_id(self, document_id: int) -> Document | None: ...

    async def find_by_client_id(self, client_id: int, page: int | None, limit: int | None) -> Page[Document]: ...

    async def find_all(self, page: int | None, limit: int | None) -> Page[Document]: ...

    async def find_by_type(
        self, document_type: DocumentType, page: int | None, limit: int | None
    ) -> Page[Document]: ...

    async def count(self, document_type: DocumentType | None = None) -> int: ...

    async def delete(self, document_id: int) -> bool: ...


class PDFContentExtractor(Protocol):
    @property
    def max_file_size(self) -> int: ...

    async def extract(self, file_content: bytes, original_filename: str | None) -> ExtractedContent: ...

    def service_info(self) -> dict[str, object]: ...


class PageContentExtractor(Protocol):
    async def scrape(self, url: str) -> ExtractedContent: ...

    def service_info(self) -> dict[str, object]: ...


class StoredFiles(Protocol):
    async def delete(self, relative_path: str) -> bool: ...


class DocumentService:
    """Turns uploaded PDFs and web pages into persisted documents.

    Either extractor may be left out (the capability is disabled); the
    matching entry point then fails with a "service unavailable"
    ProcessingError.
    """

    def __init__(
        self,
        documents: DocumentStore,
        clients: ClientLookup,
        pdf_extractor: PDFContentExtractor | None = None,
        web_scraper: PageContentExtractor | None = None,
        file_storage: StoredFiles | None = None,
    ) -> None:
        self._documents = documents
        self._clients = clients
        self._pdf_extractor = pdf_extractor
        self._web_scraper = web_scraper
        self._file_storage = file_storage

    def available_extractors(self) -> dict[str, bool]:
        """Report which extractors are wired in."""
        return {
            "pdf_processing": self._pdf_extractor is not None,
            "web_scraping": self._web_scraper is not None,
        }

    def extractor_info(self) -> dict[str, dict[str, object]]:
        """Settings of each wired extractor, keyed like available_extractors()."""
        info: dict[str, dict[str, object]] = {}
        if self._pdf_extractor is not None:
            info["pdf_processing"] = self._pdf_extractor.service_info()
        if self._web_scraper is not None:
            info["web_scraping"] = self._web_scraper.service_info()
        return info

    async def process_pdf(
        self,
        file_content: bytes | None,
        filename: str | None,
        content_type: str | None,
        client_id: int,
    ) -> Document:
        """Extract a PDF and store it as a document of the given client.

        Args:
            file_content: Uploaded bytes.
            filename: Original file name, used for the title fallback and stored name.
            content_type: Declared media type; must be application/pdf.
            client_id: Owning client.

        Returns:
            The persisted document.

        Raises:
            ValidationError: Bad input, bad PDF or business rule violations.
            NotFoundError: The client does not exist.
            ProcessingError: Extraction or persistence failed, or PDF processing is disabled.
        """
        extractor = self._pdf_extractor
        if extractor is None:
            raise ProcessingError("PDF processing service is not available", reason="service_unavailable")

        if file_content is None:
            raise ValidationError("PDF file is required")
        if len(file_content) == 0:
            raise ValidationError("PDF file is empty", reason="empty")
        media_type = (content_type or "").split(";")[0].strip().lower()
        if media_type != PDF_MEDIA_TYPE:
            raise ValidationError(
                "Invalid file type. Only PDF files are allowed", reason="unsupported_media_type"
            )
        max_size = extractor.max_file_size
        if len(file_content) > max_size:
            raise ValidationError(
                f"File size exceeds maximum allowed size ({max_size // (1024 * 1024)}MB)",
                reason="too_large",
            )
        ensure_positive_id(client_id)

        async def _process() -> Document:
            await self._clients.validate_client_exists(client_id)
            extracted = await extractor.extract(file_content, filename)
            try:
                return await self._persist(client_id, extracted)
            except Exception:
                await self._discard_stored_file(extracted)
                raise

        return await self._guard("Failed to process PDF document", _process)

    async def process_web_page(self, url: str | None, client_id: int) -> Document:
        """Scrape a web page and store it as a document of the given client.

        Raises:
            ValidationError: Bad input, unreachable page or business rule violations.
            NotFoundError: The client does not exist.
            ProcessingError: Scraping or persistence failed, or web scraping is disabled.
        """
        scraper = self._web_scraper
        if scraper is None:
            raise ProcessingError("Web scraping service is not available", reason="service_unavailable")

        ensure_positive_id(client_id)
        if url is None or not url.strip():
            raise ValidationError("URL is required", reason="invalid_url")
        check_url_format(url)

        async def _process() -> Document:
            await self._clients.validate_client_exists(client_id)
            extracted = await scraper.scrape(url)
            return await self._persist(client_id, extracted)

        return await self._guard("Failed to process web page", _process)

    async def _persist(self, client_id: int, extracted: ExtractedContent) -> Document:
        content = sanitize(extracted.content)
        if not content:
            raise ProcessingError("No content could be extracted", reason="no_content")

        document = NewDocument(
            client_id=client_id,
            title=(extracted.title or derive_title(content)).strip(),
            content=content,
            source=extracted.source,
        )

        violations = validate_business_rules(document)
        if violations:
            raise ValidationError(
                f"Business rule validation failed: {', '.join(violations)}",
                reason="business_rule",
                violations=violations,
            )

        try:
            created = await self._documents.create(document)
        except DatabaseError as e:
            raise ProcessingError("Failed to save document", reason="persistence", cause=e) from e

        logger.info(
            f"Created {created.document_type.value} document {created.id} for client {client_id}"
        )
        return created

    async def _discard_stored_file(self, extracted: ExtractedContent) -> None:
        if self._file_storage is None or not isinstance(extracted.source, PDFSource):
            return
        removed = await self._file_storage.delete(extracted.source.file_path)
        if removed:
            logger.info(f"Removed orphaned upload {extracted.source.file_path}")

    async def _guard(self, message: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        except _TYPED_FAILURES:
            raise
        except Exception as e:
            logger.exception(f"{message}: {e}")
            raise ProcessingError(message, cause=e) from e

    async def get_document(self, document_id: int) -> Document | None:
        ensure_positive_id(document_id, "Document ID")
        return await self._guard("Failed to fetch document", lambda: self._documents.find_by_id(document_id))

    async def get_documents_by_client(
        self, client_id: int, page: int | None = None, limit: int | None = None
    ) -> Page[Document]:
        async def _list() -> Page[Document]:
            await self._clients.validate_client_exists(client_id)
            return await self._documents.find_by_client_id(client_id, page, limit)

        return await self._guard("Failed to fetch documents by client", _list)

    async def get_all_documents(self, page: int | None = None, limit: int | None = None) -> Page[Document]:
        return await self._guard("Failed to fetch documents", lambda: self._documents.find_all(page, limit))

    async def get_documents_by_type(
        self, document_type: DocumentType | str, page: int | None = None, limit: int | None = None
    ) -> Page[Document]:
        try:
            kind = DocumentType(document_type)
        except ValueError as e:
            raise ValidationError('Document type must be either "pdf" or "web"') from e
        return await self._guard(
            "Failed to fetch documents by type", lambda: self._documents.find_by_type(kind, page, limit)
        )

    async def delete_document(self, document_id: int) -> bool:
        """Delete a document and, best effort, its stored PDF.

        Returns:
            False if the document did not exist.
        """
        ensure_positive_id(document_id, "Document ID")

        async def _delete() -> Document | None:
            document = await self._documents.find_by_id(document_id)
            if document is None or not await self._documents.delete(document_id):
                return None
            return document

        deleted = await self._guard("Failed to delete document", _delete)
        if deleted is None:
            return False

        if deleted.file_path and self._file_storage is not None:
            await self._file_storage.delete(deleted.file_path)
        logger.info(f"Deleted document {document_id}")
        return True

    async def get_statistics(self) -> dict[str, int]:
        async def _count() -> dict[str, int]:
            return {
                "total_documents": await self._documents.count(),
                "pdf_documents": await self._documents.count(DocumentType.PDF),
                "web_documents": await self._documents.count(DocumentType.WEB),
            }

        return await self._guard("Failed to fetch document statistics", _count)
