"""Generic collection CRUD endpoints — one route set for every entity kind."""

from typing import Any

from fastapi import APIRouter, Body, Depends, status

from hotel_pos.application.schemas import DeleteResponse, IndexResponse
from hotel_pos.application.services import StorageFacade
from hotel_pos.domain.exceptions import StorageError
from hotel_pos.infrastructure.dependencies import get_storage_facade
from hotel_pos.presentation.api.v1.errors import http_error

router = APIRouter(prefix="/collections", tags=["Collections"])


@router.get("/{collection}", response_model=list[dict[str, Any]])
async def list_records(
    collection: str,
    facade: StorageFacade = Depends(get_storage_facade),
) -> list[dict[str, Any]]:
    """Every record in the collection, oldest first."""
    try:
        return await facade.get_all(collection)
    except StorageError as e:
        raise http_error(e)


@router.get("/{collection}/index", response_model=IndexResponse)
async def get_index(
    collection: str,
    facade: StorageFacade = Depends(get_storage_facade),
) -> IndexResponse:
    """Raw index contents, for diagnostics."""
    try:
        ids = await facade.get_index(collection)
    except StorageError as e:
        raise http_error(e)
    return IndexResponse(collection=collection, ids=ids, count=len(ids))


@router.get("/{collection}/{record_id}", response_model=dict[str, Any])
async def get_record(
    collection: str,
    record_id: str,
    facade: StorageFacade = Depends(get_storage_facade),
) -> dict[str, Any]:
    try:
        return await facade.get(collection, record_id)
    except StorageError as e:
        raise http_error(e)


@router.post("/{collection}", response_model=dict[str, Any], status_code=status.HTTP_201_CREATED)
async def create_record(
    collection: str,
    payload: Any = Body(...),
    facade: StorageFacade = Depends(get_storage_facade),
) -> dict[str, Any]:
    """Create a record; ``id``, ``createdAt`` and ``updatedAt`` are assigned by the server."""
    try:
        return await facade.create(collection, payload)
    except StorageError as e:
        raise http_error(e)


@router.put("/{collection}/{record_id}", response_model=dict[str, Any])
async def update_record(
    collection: str,
    record_id: str,
    payload: Any = Body(...),
    facade: StorageFacade = Depends(get_storage_facade),
) -> dict[str, Any]:
    """Shallow-merge the payload over the stored record."""
    try:
        return await facade.update(collection, record_id, payload)
    except StorageError as e:
        raise http_error(e)


@router.delete("/{collection}/{record_id}", response_model=DeleteResponse)
async def delete_record(
    collection: str,
    record_id: str,
    facade: StorageFacade = Depends(get_storage_facade),
) -> DeleteResponse:
    """Deleting a missing record is not an error: ``deleted`` is simply false."""
    try:
        deleted = await facade.delete(collection, record_id)
    except StorageError as e:
        raise http_error(e)
    return DeleteResponse(deleted=deleted)
