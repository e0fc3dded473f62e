"""Index inspection and repair endpoints."""

from fastapi import APIRouter, Depends, Query

from hotel_pos.application.schemas import DriftReportResponse, RebuildResultResponse
from hotel_pos.application.services import StorageFacade
from hotel_pos.domain.collections import KNOWN_COLLECTIONS
from hotel_pos.domain.exceptions import StorageError
from hotel_pos.infrastructure.dependencies import get_storage_facade
from hotel_pos.presentation.api.v1.errors import http_error

router = APIRouter(prefix="/maintenance/indexes", tags=["Maintenance"])


@router.get("", response_model=list[DriftReportResponse])
async def inspect_all_indexes(
    facade: StorageFacade = Depends(get_storage_facade),
) -> list[DriftReportResponse]:
    """Drift report for every known collection."""
    try:
        reports = await facade.maintainer.inspect_all(KNOWN_COLLECTIONS)
    except StorageError as e:
        raise http_error(e)
    return [DriftReportResponse.model_validate(r, from_attributes=True) for r in reports]


@router.get("/{collection}", response_model=DriftReportResponse)
async def inspect_index(
    collection: str,
    facade: StorageFacade = Depends(get_storage_facade),
) -> DriftReportResponse:
    try:
        report = await facade.maintainer.inspect(collection)
    except StorageError as e:
        raise http_error(e)
    return DriftReportResponse.model_validate(report, from_attributes=True)


@router.post("/{collection}/rebuild", response_model=RebuildResultResponse)
async def rebuild_index(
    collection: str,
    bucket_field: str | None = Query(None, description="Also build per-value bucket indexes"),
    facade: StorageFacade = Depends(get_storage_facade),
) -> RebuildResultResponse:
    """Recompute the collection index from a full key scan."""
    try:
        result = await facade.maintainer.rebuild(collection, bucket_field=bucket_field)
    except StorageError as e:
        raise http_error(e)
    return RebuildResultResponse.model_validate(result, from_attributes=True)
