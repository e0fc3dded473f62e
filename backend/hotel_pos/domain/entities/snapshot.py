"""Domain entity for stored data snapshots."""

from dataclasses import dataclass, field


@dataclass
class SnapshotSummary:
    """Lightweight listing entry for a stored snapshot."""

    id: str
    created_at: str
    description: str
    counts: dict[str, int] = field(default_factory=dict)


@dataclass
class CollectionDiff:
    """Record IDs that differ between two snapshots of one collection."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)
