"""Value objects produced by index inspection and repair."""

from dataclasses import dataclass, field


@dataclass
class DriftReport:
    """Divergence between a collection's index and its actual record keys.

    ``orphaned_ids`` are records that exist but are missing from the index;
    ``dangling_ids`` are index entries whose record no longer exists.
    """

    collection: str
    indexed_count: int
    record_count: int
    orphaned_ids: list[str] = field(default_factory=list)
    dangling_ids: list[str] = field(default_factory=list)
    legacy_encoding: bool = False

    @property
    def has_drift(self) -> bool:
        return bool(self.orphaned_ids or self.dangling_ids or self.legacy_encoding)


@dataclass
class RebuildResult:
    """Outcome of a full index rebuild for one collection."""

    collection: str
    record_count: int
    added: int
    removed: int
    bucket_field: str | None = None
    buckets: dict[str, int] = field(default_factory=dict)
