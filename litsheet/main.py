"""ASGI application for the extraction sheet service."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from litsheet.api.main import api_router
from litsheet.config import settings
from litsheet.database.client import close_database, db_client, init_database
from litsheet.schemas.sheets import HealthCheckResponse, ServiceInfoResponse
from litsheet.services.extraction.extraction_engine import EngineRegistry
from litsheet.utils.logging import get_logger

LOGGER = get_logger(__name__, level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Prepare storage on startup and release it on shutdown.

    A database that is unreachable at startup is logged, not fatal; the
    health endpoint reports it as degraded.
    """
    LOGGER.info(
        "Litsheet starting",
        extra={"version": settings.app_version, "environment": settings.environment},
    )
    try:
        await init_database()
    except Exception as e:
        LOGGER.error("Database initialization failed", exc_info=True, extra={"error": str(e)})

    yield

    try:
        await close_database()
    except Exception as e:
        LOGGER.error("Database shutdown failed", exc_info=True, extra={"error": str(e)})
    LOGGER.info("Litsheet stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Structured-extraction spreadsheets over a research paper library",
    lifespan=lifespan,
)

# Runs are tracked per process; one registry serves every request.
app.state.engine_registry = EngineRegistry()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Service and database health",
    operation_id="get_health",
)
async def health() -> HealthCheckResponse:
    database = await db_client.health_check()
    return HealthCheckResponse(
        status="healthy" if database["status"] == "healthy" else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        database=database["status"],
    )


@app.get(
    "/",
    response_model=ServiceInfoResponse,
    tags=["Root"],
    summary="Service information",
    operation_id="get_service_info",
)
async def service_info() -> ServiceInfoResponse:
    return ServiceInfoResponse(
        service=settings.app_name,
        version=settings.app_version,
        api_prefix=settings.api_v1_prefix,
        docs=app.docs_url,
        health="/health",
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "litsheet.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
