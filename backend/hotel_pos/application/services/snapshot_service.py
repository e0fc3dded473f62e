"""Point-in-time copies of every known collection, stored in the KV backend.

A snapshot lives at ``snapshot:<millis>-<random>`` as one document holding
the full record lists. Restoring writes each record back through the
facade, so collection indexes stay in step with the restored records.
"""

import logging
import secrets
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from hotel_pos.application.services.entity_store import format_timestamp, utc_now
from hotel_pos.application.services.storage_facade import StorageFacade
from hotel_pos.domain import keys
from hotel_pos.domain.collections import AUDIT_LOG, KNOWN_COLLECTIONS
from hotel_pos.domain.entities import CollectionDiff, SnapshotSummary
from hotel_pos.domain.exceptions import EntityNotFoundError, StorageError

logger = logging.getLogger(__name__)

SNAPSHOT_NAMESPACE = "snapshot"
DEFAULT_DESCRIPTION = "数据快照"


def snapshot_key(snapshot_id: str) -> str:
    return keys.record_key(SNAPSHOT_NAMESPACE, snapshot_id)


def _strip_namespace(snapshot_id: str) -> str:
    prefix = f"{SNAPSHOT_NAMESPACE}{keys.SEPARATOR}"
    return snapshot_id[len(prefix):] if snapshot_id.startswith(prefix) else snapshot_id


class SnapshotService:
    def __init__(
        self,
        facade: StorageFacade,
        collections: Iterable[str] = KNOWN_COLLECTIONS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._facade = facade
        self._collections = tuple(collections)
        self._clock = clock

    async def create(self, description: str = "") -> SnapshotSummary:
        now = self._clock()
        snapshot_id = f"{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"
        data = {collection: await self._facade.get_all(collection) for collection in self._collections}
        document = {
            "id": snapshot_id,
            "createdAt": format_timestamp(now),
            "description": description or DEFAULT_DESCRIPTION,
            "data": data,
        }
        await self._facade.kv.set(snapshot_key(snapshot_id), document)
        summary = _summarize(document)
        logger.info("Created snapshot %s (%d records)", snapshot_id, sum(summary.counts.values()))
        return summary

    async def list_snapshots(self) -> list[SnapshotSummary]:
        """Stored snapshots, newest first."""
        found = await self._facade.kv.keys(keys.collection_pattern(SNAPSHOT_NAMESPACE))
        documents = await self._facade.kv.get_many(found)
        summaries = [_summarize(doc) for doc in documents if isinstance(doc, dict)]
        return sorted(summaries, key=lambda s: s.created_at, reverse=True)

    async def get(self, snapshot_id: str) -> dict[str, Any]:
        snapshot_id = _strip_namespace(snapshot_id)
        document = await self._facade.kv.get(snapshot_key(snapshot_id))
        if not isinstance(document, dict):
            raise EntityNotFoundError(SNAPSHOT_NAMESPACE, snapshot_id)
        return document

    async def restore(self, snapshot_id: str) -> dict[str, int]:
        """Write every snapshotted record back. Records created since are kept."""
        document = await self.get(snapshot_id)
        restored: dict[str, int] = {}
        for collection, records in (document.get("data") or {}).items():
            if not isinstance(records, list):
                continue
            count = 0
            for record in records:
                record_id = record.get("id") if isinstance(record, dict) else None
                if not isinstance(record_id, str) or not record_id:
                    logger.warning("Snapshot %s: skipping %s record without id", snapshot_id, collection)
                    continue
                await self._facade.put(collection, record_id, record, validate=False)
                count += 1
            restored[collection] = count

        await self._record_restore(document["id"], restored)
        logger.info("Restored snapshot %s: %s", document["id"], restored)
        return restored

    async def compare(self, snapshot_a: str, snapshot_b: str) -> dict[str, CollectionDiff]:
        """Per-collection added / removed / modified record IDs going from *a* to *b*.

        Collections without differences are omitted.
        """
        data_a = (await self.get(snapshot_a)).get("data") or {}
        data_b = (await self.get(snapshot_b)).get("data") or {}
        changes: dict[str, CollectionDiff] = {}
        for collection in sorted(set(data_a) | set(data_b)):
            before = _by_id(data_a.get(collection))
            after = _by_id(data_b.get(collection))
            diff = CollectionDiff(
                added=sorted(after.keys() - before.keys()),
                removed=sorted(before.keys() - after.keys()),
                modified=sorted(rid for rid in before.keys() & after.keys() if before[rid] != after[rid]),
            )
            if not diff.is_empty:
                changes[collection] = diff
        return changes

    async def _record_restore(self, snapshot_id: str, restored: dict[str, int]) -> None:
        entry = {
            "action": "snapshot_restore",
            "userId": "system",
            "snapshotId": snapshot_id,
            "details": {"restored": restored},
            "timestamp": format_timestamp(self._clock()),
        }
        # The restore itself has already succeeded at this point.
        try:
            await self._facade.create(AUDIT_LOG, entry)
        except StorageError as exc:
            logger.error("Could not write audit entry for snapshot %s: %s", snapshot_id, exc)


def _by_id(records: Any) -> dict[str, dict[str, Any]]:
    if not isinstance(records, list):
        return {}
    return {r["id"]: r for r in records if isinstance(r, dict) and isinstance(r.get("id"), str)}


def _summarize(document: dict[str, Any]) -> SnapshotSummary:
    data = document.get("data") or {}
    return SnapshotSummary(
        id=str(document.get("id", "")),
        created_at=str(document.get("createdAt", "")),
        description=str(document.get("description") or DEFAULT_DESCRIPTION),
        counts={name: len(items) for name, items in data.items() if isinstance(items, list)},
    )
