"""Domain models and API request/response schemas.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Document, NewDocument, ExtractedContent: documents and their tagged source
    - Client: owner of documents
    - DocumentResponse, PaginatedDocuments, ClientResponse: API payloads
"""

from doculink.models.document import (
    Client,
    Document,
    DocumentSource,
    DocumentType,
    ExtractedContent,
    NewDocument,
    PDFSource,
    WebSource,
    validate_business_rules,
)

__all__ = [
    "Client",
    "Document",
    "DocumentSource",
    "DocumentType",
    "ExtractedContent",
    "NewDocument",
    "PDFSource",
    "WebSource",
    "validate_business_rules",
]
