"""Generic async repository with standard CRUD operations."""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from litsheet.core.exceptions import DatabaseError
from litsheet.database.base import Base
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository bound to one ORM model.

    Attributes:
        session: SQLAlchemy async session
        model: ORM model class
    """

    def __init__(self, session: AsyncSession, model: Type[T]):
        self.session = session
        self.model = model

    async def create(self, **kwargs: Any) -> T:
        """Create and flush a new record.

        Raises:
            DatabaseError: If the insert fails
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Failed to create {self.model.__name__}: {str(e)}",
                exc_info=True,
            )
            raise DatabaseError(f"Failed to create {self.model.__name__}", original_error=e)
        return instance

    async def get_by_id(self, id: Any) -> Optional[T]:
        return await self.session.get(self.model, id)
