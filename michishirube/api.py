"""
FastAPI application for Michishirube.
"""

from __future__ import annotations

import importlib.metadata
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import get_settings
from .db.repository import open_repository
from .errors import MichishirubeError, NotFoundError, ValidationError
from .logging_setup import configure_logging
from .routes import router

logger = structlog.get_logger()


def error_status(exc: MichishirubeError) -> int:
    """HTTP status for a domain error."""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the repository on startup and close it on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    database_url = settings.resolved_database_url()
    logger.info("starting_michishirube", database_url=database_url)
    repository = open_repository(database_url)
    app.state.repository = repository
    logger.info("repository_ready", schema_version=repository.schema_version)

    try:
        yield
    finally:
        logger.info("shutting_down_michishirube")
        app.state.repository = None
        repository.close()


app = FastAPI(
    title="Michishirube",
    description="Task, link and comment tracking on an embedded SQLite store",
    version=importlib.metadata.version("michishirube"),
    lifespan=lifespan,
)
app.include_router(router)


@app.exception_handler(MichishirubeError)
async def michishirube_error_handler(request: Request, exc: MichishirubeError) -> JSONResponse:
    """Render domain errors as ``{"detail": {...}}`` with a matching status."""
    status_code = error_status(exc)
    if status_code >= 500:
        logger.error("request_failed", path=request.url.path, **exc.to_dict())
    else:
        logger.debug("request_rejected", path=request.url.path, **exc.to_dict())
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


@app.get("/healthz", tags=["system"])
def healthz() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/version", tags=["system"])
def version() -> dict[str, str]:
    """Return the version of the application."""
    return {"version": importlib.metadata.version("michishirube")}
