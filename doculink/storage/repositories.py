"""Repositories for clients and documents.

Repositories take an AsyncSession, commit their own writes and translate
SQLAlchemy failures into doculink.errors types. Rows never leave this
module; callers get domain models.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from doculink.errors import ConflictError, DatabaseError, NotFoundError
from doculink.models.document import Client, Document, DocumentType, NewDocument, PDFSource, WebSource
from doculink.storage.database import ClientRow, DocumentRow, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class Page(Generic[T]):
    """One page of results plus the numbers needed to navigate the rest."""

    items: list[T] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def clamp_pagination(page: int | None, limit: int | None) -> tuple[int, int]:
    """Normalise page/limit: page >= 1, 1 <= limit <= 100, default 10."""
    page = max(1, page or 1)
    limit = min(MAX_PAGE_SIZE, max(1, limit or DEFAULT_PAGE_SIZE))
    return page, limit


class ClientRepository:
    """Repository for client rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, email: str) -> Client:
        row = ClientRow(name=name, email=email)
        try:
            self.session.add(row)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("Email already exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create client: {e}")
            raise DatabaseError("create client", e) from e
        return Client.model_validate(row)

    async def find_by_id(self, client_id: int) -> Client | None:
        try:
            row = await self.session.get(ClientRow, client_id)
        except SQLAlchemyError as e:
            raise DatabaseError("get client", e) from e
        return Client.model_validate(row) if row else None

    async def find_by_email(self, email: str) -> Client | None:
        try:
            result = await self.session.execute(select(ClientRow).where(ClientRow.email == email))
        except SQLAlchemyError as e:
            raise DatabaseError("get client by email", e) from e
        row = result.scalar_one_or_none()
        return Client.model_validate(row) if row else None

    async def find_all(self) -> list[Client]:
        try:
            result = await self.session.execute(
                select(ClientRow).order_by(desc(ClientRow.created_at), desc(ClientRow.id))
            )
        except SQLAlchemyError as e:
            raise DatabaseError("list clients", e) from e
        return [Client.model_validate(row) for row in result.scalars().all()]

    async def count_documents(self, client_id: int) -> int:
        try:
            result = await self.session.execute(
                select(func.count()).select_from(DocumentRow).where(DocumentRow.client_id == client_id)
            )
        except SQLAlchemyError as e:
            raise DatabaseError("count client documents", e) from e
        return result.scalar_one()

    async def delete(self, client_id: int) -> bool:
        try:
            result = await self.session.execute(delete(ClientRow).where(ClientRow.id == client_id))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError("delete client", e) from e
        return result.rowcount > 0


class DocumentRepository:
    """Repository for document rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, document: NewDocument) -> Document:
        """Insert a document; id and timestamps are assigned here.

        Raises:
            NotFoundError: The referenced client no longer exists.
            DatabaseError: Any other storage failure.
        """
        source = document.source
        now = utcnow()
        row = DocumentRow(
            client_id=document.client_id,
            title=document.title.strip(),
            content=document.content,
            document_type=source.document_type.value,
            file_path=source.file_path if isinstance(source, PDFSource) else None,
            source_url=source.source_url if isinstance(source, WebSource) else None,
            processed_at=now,
            created_at=now,
        )

        try:
            self.session.add(row)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if "foreign key" in str(e.orig).lower():
                logger.warning(f"Client {document.client_id} vanished before document insert")
                raise NotFoundError("client", document.client_id) from e
            raise DatabaseError("create document", e) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create document: {e}")
            raise DatabaseError("create document", e) from e

        return Document.from_row(row)

    async def find_by_id(self, document_id: int) -> Document | None:
        try:
            row = await self.session.get(DocumentRow, document_id)
        except SQLAlchemyError as e:
            raise DatabaseError("get document", e) from e
        return Document.from_row(row) if row else None

    async def find_by_client_id(
        self, client_id: int, page: int | None = None, limit: int | None = None
    ) -> Page[Document]:
        return await self._paginate(DocumentRow.client_id == client_id, page, limit)

    async def find_all(self, page: int | None = None, limit: int | None = None) -> Page[Document]:
        return await self._paginate(None, page, limit)

    async def find_by_type(
        self, document_type: DocumentType, page: int | None = None, limit: int | None = None
    ) -> Page[Document]:
        return await self._paginate(DocumentRow.document_type == document_type.value, page, limit)

    async def count(self, document_type: DocumentType | None = None) -> int:
        query = select(func.count()).select_from(DocumentRow)
        if document_type is not None:
            query = query.where(DocumentRow.document_type == document_type.value)
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise DatabaseError("count documents", e) from e
        return result.scalar_one()

    async def delete(self, document_id: int) -> bool:
        try:
            result = await self.session.execute(delete(DocumentRow).where(DocumentRow.id == document_id))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError("delete document", e) from e
        return result.rowcount > 0

    async def _paginate(self, condition, page: int | None, limit: int | None) -> Page[Document]:  # type: ignore[no-untyped-def]
        page, limit = clamp_pagination(page, limit)

        query = select(DocumentRow)
        count_query = select(func.count()).select_from(DocumentRow)
        if condition is not None:
            query = query.where(condition)
            count_query = count_query.where(condition)

        query = (
            query.order_by(desc(DocumentRow.processed_at), desc(DocumentRow.id))
            .limit(limit)
            .offset((page - 1) * limit)
        )

        try:
            total = (await self.session.execute(count_query)).scalar_one()
            rows = (await self.session.execute(query)).scalars().all()
        except SQLAlchemyError as e:
            raise DatabaseError("list documents", e) from e

        return Page(items=[Document.from_row(row) for row in rows], page=page, limit=limit, total=total)
