"""Database module for SQLAlchemy models and session management."""

from litsheet.database.base import Base, async_session_maker, engine
from litsheet.database.client import DatabaseClient, close_database, db_client, init_database
from litsheet.database.models import (
    DocumentRecord,
    SheetRecord,
    SheetRowRecord,
    SheetVersionRecord,
)
from litsheet.database.session import get_async_session

__all__ = [
    "Base",
    "engine",
    "async_session_maker",
    "get_async_session",
    "DatabaseClient",
    "db_client",
    "init_database",
    "close_database",
    "DocumentRecord",
    "SheetRecord",
    "SheetRowRecord",
    "SheetVersionRecord",
]
