"""DocuLink - document ingestion from PDFs and web pages.

Combines FastAPI for HTTP, pypdf and BeautifulSoup for extraction,
SQLAlchemy for persistence and Pydantic for data validation.

Components:
    - api: HTTP endpoints and exception mapping
    - parsing: PDF extraction, web scraping and text cleaning
    - services: Document and client business logic
    - storage: Database tables, repositories and file storage
    - models: Domain models and request/response schemas
"""

__version__ = "0.1.0"
