"""Document endpoints: PDF upload, web scraping and document queries.

Handlers only translate between HTTP and DocumentService; failures are
raised as doculink.errors types and turned into responses by the
exception handlers registered in doculink.api.app.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, Query, Response, UploadFile, status

from doculink.api.dependencies import DocumentServiceDep
from doculink.errors import NotFoundError
from doculink.models.document import DocumentType
from doculink.models.schemas import (
    DocumentResponse,
    DocumentStatistics,
    ErrorResponse,
    PaginatedDocuments,
    ProcessingHealth,
    ProcessWebRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post(
    "/pdf",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def upload_pdf(
    service: DocumentServiceDep,
    file: Annotated[UploadFile, File(description="PDF file to extract")],
    client_id: Annotated[int, Form(description="ID of the owning client")],
) -> DocumentResponse:
    """Upload a PDF, extract its text and store it as a document.

    Args:
        service: Document service for this request.
        file: The uploaded PDF file (multipart/form-data).
        client_id: Owning client.

    Returns:
        The created document.

    Raises:
        400: Invalid file (not PDF, empty, too large, corrupt, protected).
        404: Client does not exist.
        500: Extraction or storage failure.
        503: PDF processing is disabled.
    """
    content = await file.read()
    logger.info(f"Received PDF upload {file.filename!r} ({len(content)} bytes) for client {client_id}")

    document = await service.process_pdf(
        file_content=content,
        filename=file.filename,
        content_type=file.content_type,
        client_id=client_id,
    )
    return DocumentResponse.from_document(document)


@router.post(
    "/web",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def scrape_web_page(payload: ProcessWebRequest, service: DocumentServiceDep) -> DocumentResponse:
    """Scrape a web page and store it as a document.

    Raises:
        400: Invalid, private or unreachable URL.
        404: Client does not exist.
        500: Timeout or extraction failure.
        503: Web scraping is disabled.
    """
    logger.info(f"Received scrape request for {payload.url!r} from client {payload.client_id}")
    document = await service.process_web_page(payload.url, payload.client_id)
    return DocumentResponse.from_document(document)


@router.get("", response_model=PaginatedDocuments, responses=ERROR_RESPONSES)
async def list_documents(
    service: DocumentServiceDep,
    page: int = 1,
    limit: int = 10,
    document_type: Annotated[DocumentType | None, Query(alias="type")] = None,
) -> PaginatedDocuments:
    """List documents, newest first, optionally filtered by type."""
    if document_type is None:
        result = await service.get_all_documents(page, limit)
    else:
        result = await service.get_documents_by_type(document_type, page, limit)
    return PaginatedDocuments.from_page(result)


@router.get("/statistics", response_model=DocumentStatistics)
async def document_statistics(service: DocumentServiceDep) -> DocumentStatistics:
    return DocumentStatistics(**await service.get_statistics())


@router.get("/health", response_model=ProcessingHealth)
async def processing_health(service: DocumentServiceDep) -> ProcessingHealth:
    """Report which extractors are available and how they are configured."""
    services = service.available_extractors()
    extractors = service.extractor_info()
    return ProcessingHealth(
        status="healthy" if all(services.values()) else "degraded",
        services=services,
        pdf=extractors.get("pdf_processing"),
        web=extractors.get("web_scraping"),
    )


@router.get("/{document_id}", response_model=DocumentResponse, responses=ERROR_RESPONSES)
async def get_document(document_id: int, service: DocumentServiceDep) -> DocumentResponse:
    document = await service.get_document(document_id)
    if document is None:
        raise NotFoundError("document", document_id)
    return DocumentResponse.from_document(document)


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses=ERROR_RESPONSES,
)
async def delete_document(document_id: int, service: DocumentServiceDep) -> Response:
    """Delete a document and its stored PDF, if any."""
    if not await service.delete_document(document_id):
        raise NotFoundError("document", document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
