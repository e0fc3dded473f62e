"""FastAPI dependency injection — wires infrastructure to application layer."""

import secrets
from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request, status

from hotel_pos.config import Settings, get_settings
from hotel_pos.application.services import SeedService, SnapshotService, StorageFacade


def get_storage_facade(request: Request) -> StorageFacade:
    """Provides the facade built once in the application lifespan."""
    facade = getattr(request.app.state, "storage_facade", None)
    if facade is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is not initialised",
        )
    return facade


async def get_seed_service(
    facade: StorageFacade = Depends(get_storage_facade),
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[SeedService, None]:
    """Provides a SeedService reading the configured seed file."""
    yield SeedService(facade, settings.seed_data_path)


async def get_snapshot_service(
    facade: StorageFacade = Depends(get_storage_facade),
) -> AsyncGenerator[SnapshotService, None]:
    yield SnapshotService(facade)


async def require_admin_key(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Rejects the request unless it carries ``Authorization: Bearer <ADMIN_KEY>``."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Bearer token",
        )
    provided = authorization[len("Bearer "):]
    expected = settings.admin_key
    if not expected or not secrets.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin key mismatch",
        )
