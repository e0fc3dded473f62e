from .entity_store import EntityStore, generate_id
from .index_maintainer import IndexMaintainer
from .storage_facade import StorageFacade
from .seed_service import SeedService
from .snapshot_service import SnapshotService

__all__ = [
    "EntityStore",
    "generate_id",
    "IndexMaintainer",
    "StorageFacade",
    "SeedService",
    "SnapshotService",
]
