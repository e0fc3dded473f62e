"""Pydantic DTOs for index maintenance and snapshots."""

from pydantic import BaseModel, Field


class DriftReportResponse(BaseModel):
    collection: str
    indexed_count: int
    record_count: int
    orphaned_ids: list[str]
    dangling_ids: list[str]
    legacy_encoding: bool
    has_drift: bool

    model_config = {"from_attributes": True}


class RebuildResultResponse(BaseModel):
    collection: str
    record_count: int
    added: int
    removed: int
    bucket_field: str | None = None
    buckets: dict[str, int] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


class SnapshotCreate(BaseModel):
    description: str = Field("", max_length=500, examples=["before menu update"])


class SnapshotSummaryResponse(BaseModel):
    id: str
    created_at: str
    description: str
    counts: dict[str, int]

    model_config = {"from_attributes": True}


class SnapshotRestoreResponse(BaseModel):
    snapshot_id: str
    restored: dict[str, int]


class CollectionDiffResponse(BaseModel):
    added: list[str]
    removed: list[str]
    modified: list[str]

    model_config = {"from_attributes": True}


class SnapshotCompareResponse(BaseModel):
    """Record-level differences between two snapshots, per changed collection."""

    snapshot_a: str
    snapshot_b: str
    changes: dict[str, CollectionDiffResponse]
