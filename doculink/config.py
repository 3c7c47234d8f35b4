"""Application configuration with environment variable loading.

Pydantic-based settings for the API, the extractors and storage.
Values come from the process environment, with a .env file loaded first.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from doculink.parsing.pdf_parser import MAX_FILE_SIZE
from doculink.parsing.web_scraper import (
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RESPONSE_BYTES,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_AGENT,
)

# Load environment variables from .env file
load_dotenv()

ENVIRONMENTS = ("development", "test", "production")


def _env_flag(name: str, default: bool = True) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Configuration for the DocuLink API.

    Attributes:
        environment: Deployment environment (development, test, production).
        log_level: Root logging level.
        database_url: SQLAlchemy async database URL.
        storage_root: Directory stored file paths are relative to.
        upload_dir: Sub-directory of storage_root for uploaded PDFs.
        max_upload_size: Largest accepted PDF, in bytes.
        scraper_timeout: Per-request timeout for web scraping, in seconds.
        scraper_max_redirects: Redirects followed before giving up.
        scraper_user_agent: User-Agent header sent when scraping.
        scraper_max_response_bytes: Largest accepted HTML response.
        enable_pdf_processing: Wire the PDF extractor in.
        enable_web_scraping: Wire the web scraper in.
        cors_origins: Allowed CORS origins.
    """

    environment: str = Field(
        default_factory=lambda: os.getenv("APP_ENV", "development").strip().lower(),
        description="Deployment environment",
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper(),
        description="Logging level",
    )
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: int(os.getenv("PORT", "8000")), ge=1, le=65535)
    database_url: str = Field(
        default_factory=lambda: os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/doculink.db"),
        description="SQLAlchemy async database URL",
    )
    storage_root: str = Field(
        default_factory=lambda: os.getenv("STORAGE_ROOT", "./data"),
        description="Root directory for stored files",
    )
    upload_dir: str = Field(
        default_factory=lambda: os.getenv("UPLOAD_DIR", "uploads"),
        description="Upload directory, relative to storage_root",
    )
    max_upload_size: int = Field(
        default_factory=lambda: int(os.getenv("UPLOAD_MAX_SIZE", str(MAX_FILE_SIZE))),
        gt=0,
        description="Maximum PDF size in bytes",
    )
    scraper_timeout: float = Field(
        default_factory=lambda: float(os.getenv("WEB_SCRAPING_TIMEOUT", str(DEFAULT_TIMEOUT))),
        gt=0,
        description="Web scraping timeout in seconds",
    )
    scraper_max_redirects: int = Field(
        default_factory=lambda: int(os.getenv("WEB_SCRAPING_MAX_REDIRECTS", str(DEFAULT_MAX_REDIRECTS))),
        ge=0,
        description="Maximum redirects followed when scraping",
    )
    scraper_user_agent: str = Field(
        default_factory=lambda: os.getenv("WEB_SCRAPING_USER_AGENT", DEFAULT_USER_AGENT),
        min_length=1,
    )
    scraper_max_response_bytes: int = Field(
        default_factory=lambda: int(
            os.getenv("WEB_SCRAPING_MAX_RESPONSE_BYTES", str(DEFAULT_MAX_RESPONSE_BYTES))
        ),
        gt=0,
    )
    enable_pdf_processing: bool = Field(default_factory=lambda: _env_flag("ENABLE_PDF_PROCESSING"))
    enable_web_scraping: bool = Field(default_factory=lambda: _env_flag("ENABLE_WEB_SCRAPING"))
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
        ],
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Only known environments are accepted."""
        if v not in ENVIRONMENTS:
            raise ValueError(f"environment must be one of {', '.join(ENVIRONMENTS)}")
        return v

    @field_validator("upload_dir")
    @classmethod
    def validate_upload_dir(cls, v: str) -> str:
        """Upload directory must stay inside the storage root."""
        cleaned = v.strip().strip("/")
        if not cleaned or ".." in cleaned.split("/"):
            raise ValueError("upload_dir must be a relative path inside storage_root")
        return cleaned

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def get_settings() -> Settings:
    """Create settings from environment.

    Returns:
        Configured Settings instance.

    Raises:
        pydantic.ValidationError: If a value is out of range.
    """
    return Settings()
