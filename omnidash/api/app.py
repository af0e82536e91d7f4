"""
FastAPI application factory for OmniDash.

This module creates the FastAPI app with:
- CORS configuration for the dashboard frontend
- Snapshot store lifecycle (opened once at startup)
- Error mapping from storage failures to HTTP statuses
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .._version import __version__
from ..config import AppConfig
from ..errors import StorageError, StorageInitError
from ..storage import SnapshotStore, get_snapshot_store
from .config import Settings
from .routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the snapshot store once; report, don't crash, if it fails."""
    store: SnapshotStore = app.state.store
    try:
        await store.open()
    except StorageInitError as e:
        logger.error(f"Persistence unavailable: {e.message}", extra=e.details)

    yield


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    if isinstance(exc, StorageInitError):
        status = 503
    else:
        logger.error(f"Storage operation failed: {exc.message}", extra={"code": exc.code})
        status = 500
    return JSONResponse({"error": exc.message, "error_code": exc.code}, status_code=status)


def create_app(
    config: AppConfig | None = None,
    store: SnapshotStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Application configuration (loaded from env if not provided)
        store: Snapshot store (process-wide store if not provided)
        settings: HTTP settings (loaded from env if not provided)
    """
    config = config or AppConfig.from_env()
    settings = settings or Settings()

    app = FastAPI(
        title="OmniDash",
        description="Local cache of saved web archive snapshots.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store or get_snapshot_store(config.storage)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorageError, storage_error_handler)
    app.include_router(router, prefix="/api/v1")

    return app
