"""FastAPI dependency providers."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from litsheet.config import settings
from litsheet.core.exceptions import ConfigurationError
from litsheet.core.unified_llm import create_llm_client_from_settings
from litsheet.database.session import get_async_session
from litsheet.repositories.document_repository import DocumentRepository
from litsheet.repositories.sheet_repository import SheetRepository
from litsheet.services.extraction.extraction_engine import EngineRegistry
from litsheet.services.sheet.contracts import CompletionService
from litsheet.services.sheet.sheet_service import SheetService
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__)


def get_engine_registry(request: Request) -> EngineRegistry:
    registry = getattr(request.app.state, "engine_registry", None)
    if registry is None:
        registry = EngineRegistry()
        request.app.state.engine_registry = registry
    return registry


class UnconfiguredCompletionService(CompletionService):
    """Stands in when no provider key is set; every call fails clearly."""

    def __init__(self, reason: str):
        self.reason = reason

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        raise ConfigurationError(f"AI completion is not configured: {self.reason}")


def get_completion_service(request: Request) -> CompletionService:
    """Application-wide completion client, built on first use.

    Sheets stay usable without an API key; only AI calls fail.
    """
    client = getattr(request.app.state, "completion_service", None)
    if client is None:
        try:
            client = create_llm_client_from_settings(settings.llm)
        except ValueError as e:
            LOGGER.warning("LLM client not configured", extra={"error": str(e)})
            return UnconfiguredCompletionService(str(e))
        request.app.state.completion_service = client
    return client


async def get_sheet_service(
    request: Request,
    db_session: Annotated[AsyncSession, Depends(get_async_session)],
) -> SheetService:
    return SheetService(
        store=SheetRepository(db_session),
        corpus=DocumentRepository(db_session),
        engines=get_engine_registry(request),
        completion=get_completion_service(request),
    )
