from .storage_status import BackendInfo, ConnectionStatus
from .index_report import DriftReport, RebuildResult
from .snapshot import CollectionDiff, SnapshotSummary

__all__ = [
    "BackendInfo",
    "ConnectionStatus",
    "DriftReport",
    "RebuildResult",
    "SnapshotSummary",
    "CollectionDiff",
]
