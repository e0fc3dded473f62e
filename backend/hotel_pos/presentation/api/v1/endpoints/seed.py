"""Admin-only endpoint that writes the starter data set."""

from fastapi import APIRouter, Depends

from hotel_pos.application.schemas import SeedResponse
from hotel_pos.application.services import SeedService
from hotel_pos.domain.exceptions import StorageError
from hotel_pos.infrastructure.dependencies import get_seed_service, require_admin_key
from hotel_pos.presentation.api.v1.errors import http_error

router = APIRouter(tags=["Seed"])


@router.post("/seed", response_model=SeedResponse, dependencies=[Depends(require_admin_key)])
async def seed_data(
    service: SeedService = Depends(get_seed_service),
) -> SeedResponse:
    """Seed rooms, menu, stock and accounts. Refused (503) on the in-memory fallback."""
    try:
        counts = await service.seed()
    except StorageError as e:
        raise http_error(e)
    return SeedResponse(message="Seed data written", counts=counts)
