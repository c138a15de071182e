"""SQLAlchemy declarative base, engine and session factory."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from litsheet.config import settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def _engine_options() -> dict:
    options = {"echo": settings.db.echo, "pool_pre_ping": True}
    # SQLite uses a single-connection pool without sizing options.
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = settings.db.pool_size
        options["max_overflow"] = settings.db.max_overflow
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
