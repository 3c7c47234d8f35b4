"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - make_pdf: Builds small, valid PDF files in memory
    - sample_pdf: One-page PDF whose text is "Hello World"
    - encrypted_pdf: PDF that needs a user password to open
    - engine / session: Temporary SQLite database with the schema created
    - file_storage: FileStorage rooted in a temporary directory
    - web_pages / scraper_transport: Fake web served through httpx.MockTransport
    - async_client: HTTPX client for API testing

Implements async fixtures with proper cleanup, scoped per test so every
test gets a fresh database and storage directory.
"""

import io
from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from pypdf import PdfReader, PdfWriter
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from doculink.api.app import create_app
from doculink.config import Settings
from doculink.storage.database import create_engine, create_session_factory, init_models
from doculink.storage.files import FileStorage
from doculink.storage.repositories import ClientRepository, DocumentRepository


def _escape_pdf_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(lines: list[str] | None = None, title: str | None = None) -> bytes:
    """Build a one-page PDF with one Helvetica text line per entry.

    Args:
        lines: Text lines drawn top to bottom; none gives an empty page.
        title: Optional /Title entry for the document information dictionary.

    Returns:
        The PDF file as bytes, with a correct cross-reference table.
    """
    operations = []
    for index, line in enumerate(lines or []):
        y = 720 - index * 20
        operations.append(f"BT /F1 12 Tf 72 {y} Td ({_escape_pdf_text(line)}) Tj ET")
    stream = "\n".join(operations).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        (
            b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>"
        ),
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    if title is not None:
        objects.append(b"<< /Title (" + _escape_pdf_text(title).encode("latin-1") + b") >>")

    output = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_position = len(output)
    output += f"xref\n0 {len(objects) + 1}\n".encode()
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += f"{offset:010d} 00000 n \n".encode()

    trailer = f"<< /Size {len(objects) + 1} /Root 1 0 R"
    if title is not None:
        trailer += f" /Info {len(objects)} 0 R"
    trailer += " >>"
    output += f"trailer\n{trailer}\nstartxref\n{xref_position}\n%%EOF\n".encode()
    return bytes(output)


def encrypt_pdf(content: bytes, user_password: str) -> bytes:
    """Re-save a PDF with RC4 encryption."""
    writer = PdfWriter(clone_from=PdfReader(io.BytesIO(content)))
    writer.encrypt(user_password=user_password, owner_password="owner-secret", algorithm="RC4-128")
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    """Return the in-memory PDF builder.

    Returns:
        build_pdf, so tests can choose lines and metadata title.
    """
    return build_pdf


@pytest.fixture
def sample_pdf() -> bytes:
    """Return a one-page PDF whose only text is "Hello World"."""
    return build_pdf(["Hello World"])


@pytest.fixture
def encrypted_pdf() -> bytes:
    """Return a PDF that cannot be opened without the password "secret"."""
    return encrypt_pdf(build_pdf(["Top secret text"]), user_password="secret")


@pytest.fixture
def owner_locked_pdf() -> bytes:
    """Return an encrypted PDF with an empty user password."""
    return encrypt_pdf(build_pdf(["Open to all"]), user_password="")


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    return tmp_path / "storage"


@pytest.fixture
def file_storage(storage_root: Path) -> FileStorage:
    return FileStorage(storage_root)


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
async def engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    """Create a temporary SQLite database with all tables.

    Yields:
        The async engine; disposed after the test.
    """
    engine = create_engine(database_url)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def client_repository(session: AsyncSession) -> ClientRepository:
    return ClientRepository(session)


@pytest.fixture
def document_repository(session: AsyncSession) -> DocumentRepository:
    return DocumentRepository(session)


@pytest.fixture
def web_pages() -> dict[str, str]:
    """HTML served by the fake web, keyed by full URL. Tests may add pages."""
    return {
        "https://example.com": (
            "<html><head><title></title></head><body>"
            "<h1>Page Heading</h1>"
            "<p>Example body text for the scraping scenario.</p>"
            "</body></html>"
        ),
    }


@pytest.fixture
def requested_urls() -> list[str]:
    """Every URL the fake web received, in order."""
    return []


@pytest.fixture
def scraper_transport(web_pages: dict[str, str], requested_urls: list[str]) -> httpx.MockTransport:
    """Serve web_pages as text/html; anything else is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url).rstrip("/")
        requested_urls.append(url)
        html = web_pages.get(url)
        if html is None:
            return httpx.Response(404, headers={"content-type": "text/html"}, text="not found")
        return httpx.Response(200, headers={"content-type": "text/html; charset=utf-8"}, text=html)

    return httpx.MockTransport(handler)


@pytest.fixture
def settings(database_url: str, storage_root: Path) -> Settings:
    """Test settings pointing at the temporary database and storage."""
    return Settings(
        environment="test",
        database_url=database_url,
        storage_root=str(storage_root),
        upload_dir="uploads",
        enable_pdf_processing=True,
        enable_web_scraping=True,
        cors_origins=["*"],
    )


@pytest.fixture
async def async_client(
    settings: Settings, scraper_transport: httpx.MockTransport
) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    The application lifespan runs around the client so the database and
    extractors are wired exactly as in production.

    Yields:
        Configured AsyncClient for making test requests.
    """
    app = create_app(settings, scraper_transport=scraper_transport)
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
