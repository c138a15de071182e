"""Database lifecycle: table creation, health checks and shutdown."""

from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from litsheet.database.base import Base, engine
from litsheet.utils.logging import get_logger

# Register ORM models on Base.metadata.
from litsheet.database import models  # noqa: F401

LOGGER = get_logger(__name__)


class DatabaseClient:
    """Thin wrapper over the async engine."""

    def __init__(self, db_engine: AsyncEngine):
        self.engine = db_engine

    async def create_tables(self, drop_existing: bool = False) -> None:
        async with self.engine.begin() as conn:
            if drop_existing:
                LOGGER.warning("Dropping existing tables")
                await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> Dict[str, Any]:
        """Run a trivial query against the database.

        Returns:
            Dict with "status" ("healthy" or "unhealthy") and an error
            message when unhealthy
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "healthy"}
        except Exception as e:
            LOGGER.error("Database health check failed", exc_info=True)
            return {"status": "unhealthy", "error": str(e)}

    async def close(self) -> None:
        await self.engine.dispose()


db_client = DatabaseClient(engine)


async def init_database(drop_existing: bool = False) -> None:
    """Create all tables if they do not exist.

    Args:
        drop_existing: Drop every table first (development reset only)
    """
    await db_client.create_tables(drop_existing=drop_existing)
    LOGGER.info("Database tables ready", extra={"tables": len(Base.metadata.tables)})


async def close_database() -> None:
    await db_client.close()
    LOGGER.info("Database connections closed")
