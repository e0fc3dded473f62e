"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hotel_pos.config import get_settings
from hotel_pos.application.services import StorageFacade
from hotel_pos.infrastructure.kv import build_key_value_store
from hotel_pos.infrastructure.logging.log_config import setup_logging
from hotel_pos.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — select the backend once and share one facade."""
    settings = get_settings()
    setup_logging()

    kv = await build_key_value_store(settings)
    facade = StorageFacade.for_backend(kv, validate_records=settings.validate_records)
    app.state.storage_facade = facade

    probe = await facade.connection_status()
    if not probe.connected:
        logger.error("Storage backend '%s' is unreachable: %s", probe.backend, probe.message)
    elif not probe.is_real_connection:
        logger.warning("Running on the in-memory fallback; nothing will survive a restart")

    yield

    # Shutdown
    await facade.close()
    app.state.storage_facade = None


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hotel_pos.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
