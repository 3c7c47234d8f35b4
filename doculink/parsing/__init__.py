"""Content extraction for uploaded PDFs and web pages.

Turns raw input into a title, cleaned text and a source reference.

Responsibilities:
    - PDF text and metadata extraction with pypdf
    - Single-page web scraping with httpx and BeautifulSoup
    - Text cleaning, truncation and title derivation

Both extractors return ExtractedContent and raise the typed errors from
doculink.errors.
"""

from doculink.parsing.pdf_parser import PDFContent, PDFExtractor, parse_pdf
from doculink.parsing.sanitizer import clean_content, derive_title, sanitize, truncate
from doculink.parsing.web_scraper import WebScraper, normalize_url

__all__ = [
    "PDFContent",
    "PDFExtractor",
    "WebScraper",
    "clean_content",
    "derive_title",
    "normalize_url",
    "parse_pdf",
    "sanitize",
    "truncate",
]
