"""Repositories over the SQLAlchemy models."""

from litsheet.repositories.document_repository import DocumentRepository
from litsheet.repositories.sheet_repository import SheetRepository

__all__ = ["DocumentRepository", "SheetRepository"]
