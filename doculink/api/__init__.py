"""FastAPI endpoints for DocuLink.

Endpoints:
    - GET /health: Service health status
    - /api/clients: Client management and per-client document listing
    - POST /api/documents/pdf: PDF upload and extraction
    - POST /api/documents/web: Web page scraping
    - /api/documents: Document queries, statistics and extractor health
"""

from doculink.api.app import app, create_app

__all__ = ["app", "create_app"]
