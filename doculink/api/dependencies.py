"""Request-scoped dependencies.

Each request gets its own AsyncSession; repositories and services are built
on top of it from the long-lived objects the lifespan put on app.state.
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from doculink.services.client_service import ClientService
from doculink.services.document_service import DocumentService
from doculink.storage.repositories import ClientRepository, DocumentRepository


async def get_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """Open a database session for the duration of one request.

    Yields:
        AsyncSession bound to the application's engine.
    """
    async with request.app.state.session_factory() as session:
        yield session


def get_client_service(session: Annotated[AsyncSession, Depends(get_session)]) -> ClientService:
    return ClientService(ClientRepository(session))


def get_document_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DocumentService:
    state = request.app.state
    return DocumentService(
        documents=DocumentRepository(session),
        clients=ClientService(ClientRepository(session)),
        pdf_extractor=state.pdf_extractor,
        web_scraper=state.web_scraper,
        file_storage=state.file_storage,
    )


ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]
DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]
