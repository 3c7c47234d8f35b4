"""Client business logic: thin CRUD plus the existence check used by documents."""

import logging

from doculink.errors import ConflictError, NotFoundError, ValidationError
from doculink.models.document import Client
from doculink.storage.repositories import ClientRepository

logger = logging.getLogger(__name__)


def ensure_positive_id(value: object, label: str = "Client ID") -> int:
    """Reject anything that is not a positive integer (bools included)."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{label} must be a positive integer")
    return value


class ClientService:
    """Service for client management."""

    def __init__(self, clients: ClientRepository) -> None:
        self._clients = clients

    async def create_client(self, name: str, email: str) -> Client:
        name = name.strip()
        email = email.strip().lower()
        if not name:
            raise ValidationError("Name is required")
        if not email:
            raise ValidationError("Email is required")

        if await self._clients.find_by_email(email):
            raise ConflictError("Email already exists")

        client = await self._clients.create(name=name, email=email)
        logger.info(f"Created client {client.id}")
        return client

    async def get_client_by_id(self, client_id: int) -> Client | None:
        ensure_positive_id(client_id)
        return await self._clients.find_by_id(client_id)

    async def list_clients(self) -> list[Client]:
        return await self._clients.find_all()

    async def delete_client(self, client_id: int) -> bool:
        """Delete a client that owns no documents.

        Raises:
            ConflictError: The client still has documents.
        """
        ensure_positive_id(client_id)
        if await self._clients.find_by_id(client_id) is None:
            return False

        document_count = await self._clients.count_documents(client_id)
        if document_count > 0:
            raise ConflictError(
                f"Cannot delete client with {document_count} associated documents. "
                "Please delete the documents first."
            )
        return await self._clients.delete(client_id)

    async def validate_client_exists(self, client_id: int) -> Client:
        """Resolve a client or fail.

        Raises:
            ValidationError: client_id is not a positive integer.
            NotFoundError: No client with that id.
        """
        ensure_positive_id(client_id)
        client = await self._clients.find_by_id(client_id)
        if client is None:
            raise NotFoundError("client", client_id)
        return client
