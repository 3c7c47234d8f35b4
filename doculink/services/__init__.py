"""Business services for documents and clients."""

from doculink.services.client_service import ClientService
from doculink.services.document_service import DocumentService

__all__ = ["ClientService", "DocumentService"]
