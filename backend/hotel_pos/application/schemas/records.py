"""Pydantic DTOs for the generic collection endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class IndexResponse(BaseModel):
    """Raw index contents of one collection."""

    collection: str
    ids: list[str]
    count: int


class DeleteResponse(BaseModel):
    deleted: bool


class SeedResponse(BaseModel):
    success: bool = True
    message: str
    counts: dict[str, int] = Field(default_factory=dict)


class DbStatusResponse(BaseModel):
    """Backend probe plus per-collection record counts."""

    backend: str
    description: str
    persistent: bool
    connected: bool
    is_real_connection: bool
    message: str = ""
    collections: dict[str, int | str] = Field(default_factory=dict)
    details: dict[str, Any] = Field(default_factory=dict)
