"""Snapshot endpoints — capture, list, compare and (admin) restore."""

from fastapi import APIRouter, Depends, status

from hotel_pos.application.schemas import (
    CollectionDiffResponse,
    SnapshotCompareResponse,
    SnapshotCreate,
    SnapshotRestoreResponse,
    SnapshotSummaryResponse,
)
from hotel_pos.application.services import SnapshotService
from hotel_pos.domain.exceptions import StorageError
from hotel_pos.infrastructure.dependencies import get_snapshot_service, require_admin_key
from hotel_pos.presentation.api.v1.errors import http_error

router = APIRouter(prefix="/snapshots", tags=["Snapshots"])


@router.get("", response_model=list[SnapshotSummaryResponse])
async def list_snapshots(
    service: SnapshotService = Depends(get_snapshot_service),
) -> list[SnapshotSummaryResponse]:
    """Stored snapshots, newest first."""
    try:
        summaries = await service.list_snapshots()
    except StorageError as e:
        raise http_error(e)
    return [SnapshotSummaryResponse.model_validate(s, from_attributes=True) for s in summaries]


@router.post("", response_model=SnapshotSummaryResponse, status_code=status.HTTP_201_CREATED)
async def create_snapshot(
    data: SnapshotCreate,
    service: SnapshotService = Depends(get_snapshot_service),
) -> SnapshotSummaryResponse:
    try:
        summary = await service.create(data.description)
    except StorageError as e:
        raise http_error(e)
    return SnapshotSummaryResponse.model_validate(summary, from_attributes=True)


@router.post(
    "/{snapshot_id}/restore",
    response_model=SnapshotRestoreResponse,
    dependencies=[Depends(require_admin_key)],
)
async def restore_snapshot(
    snapshot_id: str,
    service: SnapshotService = Depends(get_snapshot_service),
) -> SnapshotRestoreResponse:
    """Write every snapshotted record back; records created since are kept."""
    try:
        restored = await service.restore(snapshot_id)
    except StorageError as e:
        raise http_error(e)
    return SnapshotRestoreResponse(snapshot_id=snapshot_id, restored=restored)


@router.get("/{snapshot_a}/compare/{snapshot_b}", response_model=SnapshotCompareResponse)
async def compare_snapshots(
    snapshot_a: str,
    snapshot_b: str,
    service: SnapshotService = Depends(get_snapshot_service),
) -> SnapshotCompareResponse:
    try:
        changes = await service.compare(snapshot_a, snapshot_b)
    except StorageError as e:
        raise http_error(e)
    return SnapshotCompareResponse(
        snapshot_a=snapshot_a,
        snapshot_b=snapshot_b,
        changes={
            name: CollectionDiffResponse.model_validate(diff, from_attributes=True)
            for name, diff in changes.items()
        },
    )
