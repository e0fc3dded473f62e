"""Backend connection status endpoint."""

from fastapi import APIRouter, Depends

from hotel_pos.application.schemas import DbStatusResponse
from hotel_pos.application.services import StorageFacade
from hotel_pos.domain.exceptions import StorageError
from hotel_pos.infrastructure.dependencies import get_storage_facade
from hotel_pos.presentation.api.v1.errors import http_error

router = APIRouter(tags=["Status"])


@router.get("/db-status", response_model=DbStatusResponse)
async def db_status(
    facade: StorageFacade = Depends(get_storage_facade),
) -> DbStatusResponse:
    """Probe the active backend; real, reachable backends also report record counts."""
    info = facade.backend_info()
    try:
        probe = await facade.connection_status()
        stats = await facade.collection_stats() if probe.connected and probe.is_real_connection else {}
    except StorageError as e:
        raise http_error(e)
    return DbStatusResponse(
        backend=info.type,
        description=info.description,
        persistent=info.persistent,
        connected=probe.connected,
        is_real_connection=probe.is_real_connection,
        message=probe.message,
        collections=stats,
        details=probe.details,
    )
