"""Roadmap dashboard service entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from roadmap_dashboard import __version__
from roadmap_dashboard.api.router import router
from roadmap_dashboard.database import close_database, init_database
from roadmap_dashboard.observability import configure_logging, get_logger
from roadmap_dashboard.settings import Settings

settings = Settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle.

    Args:
        app: The FastAPI application instance.

    Yields:
        None
    """
    # Startup
    configure_logging(level=settings.log_level, json_output=settings.log_json)
    init_database(settings)
    logger.info("Service started", service=settings.service_name, version=__version__)
    yield
    # Shutdown
    await close_database()


app: FastAPI = FastAPI(
    title=settings.service_name,
    version=__version__,
    lifespan=lifespan,
)
app.state.settings = settings


@app.get("/health", tags=["Health"])
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "ok", "service": settings.service_name}


app.include_router(router, prefix="/api/v1")
