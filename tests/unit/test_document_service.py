"""Unit tests for DocumentService.

Collaborators are small in-memory fakes so each test controls exactly what
the repositories and extractors do.
"""

from datetime import UTC, datetime

import pytest
import pytest_check as check

from doculink.errors import DatabaseError, NotFoundError, ProcessingError, ValidationError
from doculink.models.document import (
    Client,
    Document,
    DocumentType,
    ExtractedContent,
    NewDocument,
    PDFSource,
    WebSource,
)
from doculink.parsing.pdf_parser import PDFExtractor
from doculink.services.document_service import DocumentService
from doculink.storage.files import FileStorage
from doculink.storage.repositories import Page, clamp_pagination

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


class FakeClients:
    def __init__(self, existing: set[int] | None = None) -> None:
        self.existing = existing if existing is not None else {1}
        self.lookups: list[int] = []

    async def validate_client_exists(self, client_id: int) -> Client:
        self.lookups.append(client_id)
        if client_id not in self.existing:
            raise NotFoundError("client", client_id)
        return Client(id=client_id, name="Acme", email="ops@acme.example", created_at=NOW, updated_at=NOW)


class FakeDocuments:
    def __init__(self) -> None:
        self.rows: dict[int, Document] = {}
        self.fail_with: Exception | None = None

    async def create(self, document: NewDocument) -> Document:
        if self.fail_with is not None:
            raise self.fail_with
        created = Document(
            id=len(self.rows) + 1,
            client_id=document.client_id,
            title=document.title,
            content=document.content,
            source=document.source,
            processed_at=NOW,
            created_at=NOW,
        )
        self.rows[created.id] = created
        return created

    async def find_by_id(self, document_id: int) -> Document | None:
        return self.rows.get(document_id)

    def _page(self, items: list[Document], page: int | None, limit: int | None) -> Page[Document]:
        page, limit = clamp_pagination(page, limit)
        start = (page - 1) * limit
        return Page(items=items[start : start + limit], page=page, limit=limit, total=len(items))

    async def find_by_client_id(self, client_id: int, page: int | None, limit: int | None) -> Page[Document]:
        return self._page([d for d in self.rows.values() if d.client_id == client_id], page, limit)

    async def find_all(self, page: int | None, limit: int | None) -> Page[Document]:
        if self.fail_with is not None:
            raise self.fail_with
        return self._page(list(self.rows.values()), page, limit)

    async def find_by_type(self, document_type: DocumentType, page: int | None, limit: int | None) -> Page[Document]:
        return self._page([d for d in self.rows.values() if d.document_type is document_type], page, limit)

    async def count(self, document_type: DocumentType | None = None) -> int:
        return sum(1 for d in self.rows.values() if document_type is None or d.document_type is document_type)

    async def delete(self, document_id: int) -> bool:
        return self.rows.pop(document_id, None) is not None


class FakePDFExtractor:
    def __init__(self, result: ExtractedContent | None = None, error: Exception | None = None) -> None:
        self.result = result or ExtractedContent(
            title="Fake PDF", content="Fake content", source=PDFSource(file_path="uploads/fake.pdf")
        )
        self.error = error
        self.calls = 0

    @property
    def max_file_size(self) -> int:
        return 1024

    async def extract(self, file_content: bytes, original_filename: str | None) -> ExtractedContent:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result

    def service_info(self) -> dict[str, object]:
        return {"max_file_size": 1024}


class FakeScraper:
    def __init__(self, result: ExtractedContent | None = None, error: Exception | None = None) -> None:
        self.result = result or ExtractedContent(
            title="Fake Page", content="Page content", source=WebSource(source_url="https://example.com")
        )
        self.error = error
        self.urls: list[str] = []

    async def scrape(self, url: str) -> ExtractedContent:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.result

    def service_info(self) -> dict[str, object]:
        return {"timeout": 30.0}


class FakeFiles:
    def __init__(self) -> None:
        self.deleted: list[str] = []

    async def delete(self, relative_path: str) -> bool:
        self.deleted.append(relative_path)
        return True


def make_service(
    pdf: FakePDFExtractor | None = None,
    scraper: FakeScraper | None = None,
    documents: FakeDocuments | None = None,
    clients: FakeClients | None = None,
    files: FakeFiles | None = None,
) -> DocumentService:
    return DocumentService(
        documents=documents or FakeDocuments(),
        clients=clients or FakeClients(),
        pdf_extractor=pdf,
        web_scraper=scraper,
        file_storage=files,
    )


class TestProcessPdf:
    """Tests for DocumentService.process_pdf()."""

    async def test_hello_world_end_to_end(self, file_storage: FileStorage, sample_pdf: bytes) -> None:
        """A real extraction produces a PDF document titled by its first line."""
        service = make_service(pdf=PDFExtractor(file_storage))  # type: ignore[arg-type]

        document = await service.process_pdf(sample_pdf, "hello.pdf", "application/pdf", 1)

        check.equal(document.document_type, DocumentType.PDF)
        check.equal(document.title, "Hello World")
        check.equal(document.content, "Hello World")
        check.is_not_none(document.file_path)
        check.is_none(document.source_url)
        check.is_true(await file_storage.exists(document.file_path or ""))

    async def test_empty_buffer(self) -> None:
        pdf = FakePDFExtractor()
        service = make_service(pdf=pdf)

        with pytest.raises(ValidationError) as exc_info:
            await service.process_pdf(b"", "empty.pdf", "application/pdf", 1)

        check.equal(exc_info.value.reason, "empty")
        check.equal(pdf.calls, 0)

    async def test_missing_file(self) -> None:
        with pytest.raises(ValidationError, match="required"):
            await make_service(pdf=FakePDFExtractor()).process_pdf(None, None, None, 1)

    @pytest.mark.parametrize("content_type", [None, "text/plain", "image/png"])
    async def test_wrong_media_type(self, content_type: str | None) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await make_service(pdf=FakePDFExtractor()).process_pdf(b"%PDF-1.4", "a.pdf", content_type, 1)

        check.equal(exc_info.value.reason, "unsupported_media_type")

    async def test_media_type_parameters_ignored(self) -> None:
        document = await make_service(pdf=FakePDFExtractor()).process_pdf(
            b"%PDF-1.4", "a.pdf", "Application/PDF; charset=binary", 1
        )

        check.equal(document.title, "Fake PDF")

    async def test_oversized_buffer(self) -> None:
        pdf = FakePDFExtractor()

        with pytest.raises(ValidationError) as exc_info:
            await make_service(pdf=pdf).process_pdf(b"x" * 2048, "big.pdf", "application/pdf", 1)

        check.equal(exc_info.value.reason, "too_large")
        check.equal(pdf.calls, 0)

    @pytest.mark.parametrize("client_id", [0, -3, True])
    async def test_invalid_client_id(self, client_id: int) -> None:
        clients = FakeClients()

        with pytest.raises(ValidationError):
            await make_service(pdf=FakePDFExtractor(), clients=clients).process_pdf(
                b"%PDF-1.4", "a.pdf", "application/pdf", client_id
            )

        check.equal(clients.lookups, [])

    async def test_unknown_client_fails_before_extraction(self) -> None:
        """A missing client is reported and no extractor is invoked."""
        pdf = FakePDFExtractor()

        with pytest.raises(NotFoundError):
            await make_service(pdf=pdf).process_pdf(b"%PDF-1.4", "a.pdf", "application/pdf", 42)

        check.equal(pdf.calls, 0)

    async def test_unavailable_without_extractor(self) -> None:
        """With no PDF extractor wired in, the client is not even looked up."""
        clients = FakeClients()

        with pytest.raises(ProcessingError) as exc_info:
            await make_service(clients=clients).process_pdf(b"%PDF-1.4", "a.pdf", "application/pdf", 1)

        check.equal(exc_info.value.reason, "service_unavailable")
        check.equal(clients.lookups, [])

    async def test_typed_extractor_errors_pass_through(self) -> None:
        error = ValidationError("Password-protected PDFs are not supported", reason="protected")

        with pytest.raises(ValidationError) as exc_info:
            await make_service(pdf=FakePDFExtractor(error=error)).process_pdf(
                b"%PDF-1.4", "a.pdf", "application/pdf", 1
            )

        check.is_(exc_info.value, error)

    async def test_unexpected_errors_are_wrapped(self) -> None:
        boom = RuntimeError("boom")

        with pytest.raises(ProcessingError) as exc_info:
            await make_service(pdf=FakePDFExtractor(error=boom)).process_pdf(
                b"%PDF-1.4", "a.pdf", "application/pdf", 1
            )

        check.is_(exc_info.value.cause, boom)
        check.is_(exc_info.value.__cause__, boom)

    async def test_title_falls_back_to_content(self) -> None:
        extracted = ExtractedContent(
            title="", content="\n\nFirst real line\nMore", source=PDFSource(file_path="uploads/x.pdf")
        )

        document = await make_service(pdf=FakePDFExtractor(result=extracted)).process_pdf(
            b"%PDF-1.4", "x.pdf", "application/pdf", 1
        )

        check.equal(document.title, "First real line")

    async def test_business_rule_failure_removes_stored_file(self) -> None:
        """Every violated rule is reported and the orphaned upload is deleted."""
        extracted = ExtractedContent(
            title="t" * 600, content="Some content", source=PDFSource(file_path="uploads/x.pdf")
        )
        files = FakeFiles()

        with pytest.raises(ValidationError) as exc_info:
            await make_service(pdf=FakePDFExtractor(result=extracted), files=files).process_pdf(
                b"%PDF-1.4", "x.pdf", "application/pdf", 1
            )

        check.equal(exc_info.value.reason, "business_rule")
        check.equal(len(exc_info.value.violations), 1)
        check.equal(files.deleted, ["uploads/x.pdf"])

    async def test_persistence_failure_removes_stored_file(self) -> None:
        documents = FakeDocuments()
        documents.fail_with = DatabaseError("create document", RuntimeError("disk I/O error"))
        files = FakeFiles()

        with pytest.raises(ProcessingError) as exc_info:
            await make_service(pdf=FakePDFExtractor(), documents=documents, files=files).process_pdf(
                b"%PDF-1.4", "a.pdf", "application/pdf", 1
            )

        check.equal(exc_info.value.reason, "persistence")
        check.equal(files.deleted, ["uploads/fake.pdf"])


class TestProcessWebPage:
    """Tests for DocumentService.process_web_page()."""

    async def test_success(self) -> None:
        scraper = FakeScraper()

        document = await make_service(scraper=scraper).process_web_page("example.com", 1)

        check.equal(document.document_type, DocumentType.WEB)
        check.equal(document.source_url, "https://example.com")
        check.is_none(document.file_path)
        check.equal(scraper.urls, ["example.com"])

    @pytest.mark.parametrize("url", ["ftp://example.com", "http://192.168.1.5", "", None])
    async def test_bad_urls_rejected_before_scraping(self, url: str | None) -> None:
        scraper = FakeScraper()
        clients = FakeClients()

        with pytest.raises(ValidationError):
            await make_service(scraper=scraper, clients=clients).process_web_page(url, 1)

        check.equal(scraper.urls, [])
        check.equal(clients.lookups, [])

    async def test_unknown_client_fails_before_scraping(self) -> None:
        scraper = FakeScraper()

        with pytest.raises(NotFoundError):
            await make_service(scraper=scraper).process_web_page("https://example.com", 99)

        check.equal(scraper.urls, [])

    async def test_unavailable_without_scraper(self) -> None:
        with pytest.raises(ProcessingError) as exc_info:
            await make_service(pdf=FakePDFExtractor()).process_web_page("https://example.com", 1)

        check.equal(exc_info.value.reason, "service_unavailable")

    async def test_timeout_passes_through(self) -> None:
        error = ProcessingError("Request timeout", reason="timeout")

        with pytest.raises(ProcessingError) as exc_info:
            await make_service(scraper=FakeScraper(error=error)).process_web_page("https://example.com", 1)

        check.is_(exc_info.value, error)

    async def test_whitespace_only_content_rejected(self) -> None:
        extracted = ExtractedContent(
            title="Blank", content=" \n\t ", source=WebSource(source_url="https://example.com")
        )

        with pytest.raises(ProcessingError) as exc_info:
            await make_service(scraper=FakeScraper(result=extracted)).process_web_page("https://example.com", 1)

        check.equal(exc_info.value.reason, "no_content")


class TestQueries:
    """Tests for lookups, listing, deletion and statistics."""

    @pytest.fixture
    async def populated(self) -> tuple[DocumentService, FakeDocuments, FakeFiles]:
        documents = FakeDocuments()
        files = FakeFiles()
        await documents.create(NewDocument.pdf(1, "Report", "pdf text", "uploads/report.pdf"))
        await documents.create(NewDocument.web(1, "Page", "web text", "https://example.com"))
        await documents.create(NewDocument.web(2, "Other", "web text", "https://example.org"))
        service = make_service(documents=documents, clients=FakeClients({1, 2}), files=files)
        return service, documents, files

    async def test_get_document(self, populated: tuple[DocumentService, FakeDocuments, FakeFiles]) -> None:
        service, _, _ = populated

        check.equal((await service.get_document(1)).title, "Report")  # type: ignore[union-attr]
        check.is_none(await service.get_document(99))

    async def test_get_document_rejects_bad_id(self, populated: tuple[DocumentService, FakeDocuments, FakeFiles]) -> None:
        service, _, _ = populated

        with pytest.raises(ValidationError):
            await service.get_document(0)

    async def test_documents_by_client(self, populated: tuple[DocumentService, FakeDocuments, FakeFiles]) -> None:
        service, _, _ = populated

        page = await service.get_documents_by_client(1)

        check.equal(page.total, 2)
        with pytest.raises(NotFoundError):
            await service.get_documents_by_client(3)

    async def test_documents_by_type(self, populated: tuple[DocumentService, FakeDocuments, FakeFiles]) -> None:
        service, _, _ = populated

        check.equal((await service.get_documents_by_type("web")).total, 2)
        check.equal((await service.get_documents_by_type(DocumentType.PDF)).total, 1)
        with pytest.raises(ValidationError):
            await service.get_documents_by_type("scan")

    async def test_pagination_clamped(self, populated: tuple[DocumentService, FakeDocuments, FakeFiles]) -> None:
        service, _, _ = populated

        page = await service.get_all_documents(page=0, limit=500)

        check.equal(page.page, 1)
        check.equal(page.limit, 100)
        check.equal(page.total, 3)
        check.equal(page.total_pages, 1)

    async def test_repository_failures_wrapped(self) -> None:
        documents = FakeDocuments()
        documents.fail_with = DatabaseError("list documents")

        with pytest.raises(ProcessingError):
            await make_service(documents=documents).get_all_documents()

    async def test_delete_removes_stored_pdf(self, populated: tuple[DocumentService, FakeDocuments, FakeFiles]) -> None:
        service, documents, files = populated

        check.is_true(await service.delete_document(1))
        check.is_false(await service.delete_document(1))
        check.is_true(await service.delete_document(2))
        check.equal(files.deleted, ["uploads/report.pdf"])
        check.equal(list(documents.rows), [3])

    async def test_statistics(self, populated: tuple[DocumentService, FakeDocuments, FakeFiles]) -> None:
        service, _, _ = populated

        check.equal(
            await service.get_statistics(),
            {"total_documents": 3, "pdf_documents": 1, "web_documents": 2},
        )

    def test_available_extractors(self) -> None:
        degraded = make_service(pdf=FakePDFExtractor())
        full = make_service(pdf=FakePDFExtractor(), scraper=FakeScraper())

        check.equal(degraded.available_extractors(), {"pdf_processing": True, "web_scraping": False})
        check.equal(full.available_extractors(), {"pdf_processing": True, "web_scraping": True})
        check.equal(set(full.extractor_info()), {"pdf_processing", "web_scraping"})
