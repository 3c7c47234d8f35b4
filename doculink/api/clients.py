"""Client endpoints: create, list, fetch, delete and list a client's documents."""

import logging

from fastapi import APIRouter, Response, status

from doculink.api.dependencies import ClientServiceDep, DocumentServiceDep
from doculink.errors import NotFoundError
from doculink.models.schemas import ClientCreate, ClientResponse, ErrorResponse, PaginatedDocuments

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.post(
    "",
    response_model=ClientResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_client(payload: ClientCreate, service: ClientServiceDep) -> ClientResponse:
    """Create a client.

    Raises:
        409: The e-mail address is already registered.
    """
    client = await service.create_client(payload.name, payload.email)
    return ClientResponse.from_client(client)


@router.get("", response_model=list[ClientResponse])
async def list_clients(service: ClientServiceDep) -> list[ClientResponse]:
    return [ClientResponse.from_client(client) for client in await service.list_clients()]


@router.get("/{client_id}", response_model=ClientResponse, responses={404: {"model": ErrorResponse}})
async def get_client(client_id: int, service: ClientServiceDep) -> ClientResponse:
    client = await service.get_client_by_id(client_id)
    if client is None:
        raise NotFoundError("client", client_id)
    return ClientResponse.from_client(client)


@router.delete(
    "/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_client(client_id: int, service: ClientServiceDep) -> Response:
    """Delete a client that has no documents.

    Raises:
        404: Client does not exist.
        409: Client still owns documents.
    """
    if not await service.delete_client(client_id):
        raise NotFoundError("client", client_id)
    logger.info(f"Deleted client {client_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{client_id}/documents",
    response_model=PaginatedDocuments,
    responses={404: {"model": ErrorResponse}},
)
async def list_client_documents(
    client_id: int,
    service: DocumentServiceDep,
    page: int = 1,
    limit: int = 10,
) -> PaginatedDocuments:
    """List one client's documents, newest first."""
    result = await service.get_documents_by_client(client_id, page, limit)
    return PaginatedDocuments.from_page(result)
