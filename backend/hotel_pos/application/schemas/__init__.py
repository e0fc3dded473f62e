from .collections import RECORD_VALIDATORS, validate_record
from .records import DbStatusResponse, DeleteResponse, IndexResponse, SeedResponse
from .maintenance import (
    CollectionDiffResponse,
    DriftReportResponse,
    RebuildResultResponse,
    SnapshotCompareResponse,
    SnapshotCreate,
    SnapshotRestoreResponse,
    SnapshotSummaryResponse,
)

__all__ = [
    "RECORD_VALIDATORS",
    "validate_record",
    "DbStatusResponse",
    "DeleteResponse",
    "IndexResponse",
    "SeedResponse",
    "CollectionDiffResponse",
    "DriftReportResponse",
    "RebuildResultResponse",
    "SnapshotCompareResponse",
    "SnapshotCreate",
    "SnapshotRestoreResponse",
    "SnapshotSummaryResponse",
]
