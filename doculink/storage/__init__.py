"""Persistence: SQLAlchemy tables, repositories and file storage."""

from doculink.storage.files import FileStorage
from doculink.storage.repositories import ClientRepository, DocumentRepository, Page

__all__ = ["ClientRepository", "DocumentRepository", "FileStorage", "Page"]
