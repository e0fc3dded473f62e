"""Collection index maintenance — the "set of live IDs" behind every collection.

Steady-state CRUD goes through :meth:`IndexMaintainer.add_write` /
:meth:`remove_write` so that index changes ride in the same batch as the
record write. Inspection and rebuild read the raw key space and exist to
detect and repair drift introduced by tools that bypass the entity store.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Any

from hotel_pos.application.interfaces import Delete, KeyValueStore, KVWrite, SetAdd, SetRemove
from hotel_pos.domain import keys
from hotel_pos.domain.collections import UNCATEGORIZED_BUCKET
from hotel_pos.domain.entities import DriftReport, RebuildResult

logger = logging.getLogger(__name__)


class IndexMaintainer:
    """Keeps ``<collection>:index`` equal to the set of IDs with a record key."""

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    # ── ID-set capability ────────────────────────────────────────────

    async def members(self, collection: str) -> set[str]:
        return await self._kv.set_members(keys.index_key(collection))

    async def add(self, collection: str, *record_ids: str) -> int:
        return await self._kv.set_add(keys.index_key(collection), *record_ids)

    async def remove(self, collection: str, *record_ids: str) -> int:
        return await self._kv.set_remove(keys.index_key(collection), *record_ids)

    @staticmethod
    def add_write(collection: str, record_id: str) -> SetAdd:
        return SetAdd(keys.index_key(collection), (record_id,))

    @staticmethod
    def remove_write(collection: str, record_id: str) -> SetRemove:
        return SetRemove(keys.index_key(collection), (record_id,))

    # ── inspection ───────────────────────────────────────────────────

    async def scan_record_ids(self, collection: str) -> set[str]:
        """IDs of every record key actually present under the collection prefix."""
        found = await self._kv.keys(keys.collection_pattern(collection))
        ids = (keys.record_id_from_key(collection, key) for key in found)
        return {record_id for record_id in ids if record_id is not None}

    async def _read_index(self, collection: str) -> tuple[set[str], bool]:
        """Return (indexed IDs, stored-with-legacy-encoding)."""
        index_key = keys.index_key(collection)
        kind = await self._kv.key_type(index_key)
        if kind is None:
            return set(), False
        if kind == "set":
            return await self._kv.set_members(index_key), False
        return _parse_legacy_index(index_key, await self._kv.get(index_key)), True

    async def inspect(self, collection: str) -> DriftReport:
        """Compare the index with a full key scan. Reports, never raises on drift."""
        keys.validate_collection(collection)
        indexed, legacy = await self._read_index(collection)
        present = await self.scan_record_ids(collection)
        report = DriftReport(
            collection=collection,
            indexed_count=len(indexed),
            record_count=len(present),
            orphaned_ids=sorted(present - indexed),
            dangling_ids=sorted(indexed - present),
            legacy_encoding=legacy,
        )
        if report.has_drift:
            logger.warning(
                "Index drift in '%s': %d orphaned, %d dangling%s",
                collection,
                len(report.orphaned_ids),
                len(report.dangling_ids),
                ", legacy encoding" if legacy else "",
            )
        return report

    async def inspect_all(self, collections: Iterable[str]) -> list[DriftReport]:
        return [await self.inspect(collection) for collection in collections]

    # ── repair ───────────────────────────────────────────────────────

    async def rebuild(self, collection: str, bucket_field: str | None = None) -> RebuildResult:
        """Recompute the index (and optional bucket indexes) from a full scan.

        The rewrite is one batch: the old index is dropped and replaced by
        exactly the set of IDs present as record keys.
        """
        keys.validate_collection(collection)
        indexed, _ = await self._read_index(collection)
        present = await self.scan_record_ids(collection)
        index_key = keys.index_key(collection)

        writes: list[KVWrite] = [Delete(index_key)]
        if present:
            writes.append(SetAdd(index_key, tuple(sorted(present))))

        buckets: dict[str, list[str]] = {}
        if bucket_field:
            buckets = await self._bucket_ids(collection, sorted(present), bucket_field)
            for stale in await self._bucket_index_keys(collection):
                writes.append(Delete(stale))
            for bucket, ids in buckets.items():
                writes.append(SetAdd(keys.bucket_index_key(collection, bucket), tuple(ids)))

        await self._kv.execute(writes)

        result = RebuildResult(
            collection=collection,
            record_count=len(present),
            added=len(present - indexed),
            removed=len(indexed - present),
            bucket_field=bucket_field,
            buckets={bucket: len(ids) for bucket, ids in buckets.items()},
        )
        logger.info(
            "Rebuilt index '%s': %d records (+%d / -%d), %d bucket index(es)",
            index_key,
            result.record_count,
            result.added,
            result.removed,
            len(result.buckets),
        )
        return result

    async def bucket_members(self, collection: str, bucket: str) -> set[str]:
        return await self._kv.set_members(keys.bucket_index_key(collection, bucket))

    async def _bucket_ids(
        self, collection: str, record_ids: list[str], bucket_field: str
    ) -> dict[str, list[str]]:
        values = await self._kv.get_many([keys.record_key(collection, rid) for rid in record_ids])
        grouped: dict[str, list[str]] = defaultdict(list)
        for record_id, record in zip(record_ids, values):
            if not isinstance(record, dict):
                continue
            bucket = record.get(bucket_field)
            name = str(bucket) if bucket not in (None, "") else UNCATEGORIZED_BUCKET
            if keys.SEPARATOR in name:
                logger.warning(
                    "Skipping %s:%s — bucket value %r contains ':'", collection, record_id, name
                )
                continue
            grouped[name].append(record_id)
        return dict(grouped)

    async def _bucket_index_keys(self, collection: str) -> list[str]:
        primary = keys.index_key(collection)
        candidates = await self._kv.keys(keys.bucket_index_key(collection, "*"))
        return [k for k in candidates if k != primary]


def _parse_legacy_index(index_key: str, value: Any) -> set[str]:
    """Accept the JSON-array encodings older tooling wrote for indexes."""
    if isinstance(value, list):
        return {str(item) for item in value if item is not None}
    logger.warning("Index '%s' holds an unrecognised value (%s); treating as empty", index_key, type(value).__name__)
    return set()
