"""Per-collection CRUD over the key-value primitive.

Every record is a JSON object stored at ``<collection>:<id>`` and carries a
generated ``id`` plus ``createdAt`` / ``updatedAt`` timestamps. The record
write and its index membership change are submitted as one batch, so the
index cannot lose an entry when the process dies between the two.
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from hotel_pos.application.interfaces import Delete, KeyValueStore, Put
from hotel_pos.application.services.index_maintainer import IndexMaintainer
from hotel_pos.domain import keys
from hotel_pos.domain.exceptions import EntityNotFoundError, InvalidPayloadError

logger = logging.getLogger(__name__)

Record = dict[str, Any]


def generate_id() -> str:
    """128 random bits, hex-encoded."""
    return uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def ensure_mapping(collection: str, data: Any) -> Record:
    if not isinstance(data, Mapping):
        raise InvalidPayloadError(
            collection, f"expected a field mapping, got {type(data).__name__}"
        )
    if not all(isinstance(field, str) for field in data):
        raise InvalidPayloadError(collection, "field names must be strings")
    return dict(data)


class EntityStore:
    """Collection-scoped record store with index maintenance.

    ``update`` never changes collection membership and therefore never
    touches the index. ``get_all`` tolerates index entries whose record has
    gone missing: they are logged and skipped, not fatal.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        index: IndexMaintainer | None = None,
        *,
        id_factory: Callable[[], str] = generate_id,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._kv = kv
        self._index = index or IndexMaintainer(kv)
        self._id_factory = id_factory
        self._clock = clock

    @property
    def index(self) -> IndexMaintainer:
        return self._index

    def generate_id(self) -> str:
        return self._id_factory()

    async def get_all(self, collection: str) -> list[Record]:
        keys.validate_collection(collection)
        ids = sorted(await self._index.members(collection))
        values = await self._kv.get_many([keys.record_key(collection, rid) for rid in ids])

        records: list[Record] = []
        for record_id, value in zip(ids, values):
            if not isinstance(value, dict):
                logger.warning(
                    "Index '%s' lists '%s' but no valid record exists; skipping",
                    keys.index_key(collection),
                    record_id,
                )
                continue
            records.append(value)
        records.sort(key=lambda r: (str(r.get("createdAt", "")), str(r.get("id", ""))))
        return records

    async def get(self, collection: str, record_id: str) -> Record | None:
        keys.validate_collection(collection)
        if not keys.is_record_id(record_id):
            return None
        value = await self._kv.get(keys.record_key(collection, record_id))
        return value if isinstance(value, dict) else None

    async def create(self, collection: str, data: Any) -> Record:
        keys.validate_collection(collection)
        fields = ensure_mapping(collection, data)
        record_id = self._id_factory()
        now = format_timestamp(self._clock())
        record = {**fields, "id": record_id, "createdAt": now, "updatedAt": now}

        await self._kv.execute([
            Put(keys.record_key(collection, record_id), record),
            self._index.add_write(collection, record_id),
        ])
        logger.debug("Created %s:%s", collection, record_id)
        return record

    async def put(self, collection: str, record_id: str, data: Any) -> Record:
        """Create or replace the record stored under a caller-chosen ID."""
        keys.validate_collection(collection)
        if not keys.is_record_id(record_id):
            raise InvalidPayloadError(collection, f"invalid record id {record_id!r}")
        fields = ensure_mapping(collection, data)

        existing = await self.get(collection, record_id)
        now = format_timestamp(self._clock())
        created_at = existing.get("createdAt", now) if existing else fields.get("createdAt", now)
        record = {**fields, "id": record_id, "createdAt": created_at, "updatedAt": now}

        await self._kv.execute([
            Put(keys.record_key(collection, record_id), record),
            self._index.add_write(collection, record_id),
        ])
        return record

    async def update(self, collection: str, record_id: str, patch: Any) -> Record:
        keys.validate_collection(collection)
        changes = ensure_mapping(collection, patch)
        existing = await self.get(collection, record_id)
        if existing is None:
            raise EntityNotFoundError(collection, record_id)

        record = {**existing, **changes}
        record["id"] = existing.get("id", record_id)
        record["createdAt"] = existing.get("createdAt", record.get("createdAt"))
        record["updatedAt"] = self._next_updated_at(existing.get("updatedAt"))
        if record["createdAt"] is None:
            record["createdAt"] = record["updatedAt"]

        await self._kv.set(keys.record_key(collection, record_id), record)
        return record

    async def delete(self, collection: str, record_id: str) -> bool:
        """Remove a record and its index entry. Missing IDs return False."""
        keys.validate_collection(collection)
        if not keys.is_record_id(record_id):
            return False
        key = keys.record_key(collection, record_id)
        existed = await self._kv.key_type(key) is not None
        await self._kv.execute([
            Delete(key),
            self._index.remove_write(collection, record_id),
        ])
        if existed:
            logger.debug("Deleted %s:%s", collection, record_id)
        return existed

    async def get_index(self, collection: str) -> list[str]:
        keys.validate_collection(collection)
        return sorted(await self._index.members(collection))

    async def count(self, collection: str) -> int:
        return len(await self.get_index(collection))

    def _next_updated_at(self, previous: Any) -> str:
        """Current time, nudged forward so updatedAt strictly increases."""
        now = self._clock()
        last = parse_timestamp(previous)
        if last is not None and now <= last:
            now = last + timedelta(milliseconds=1)
        candidate = format_timestamp(now)
        # Millisecond rounding can still collide with the previous value.
        if last is not None and parse_timestamp(candidate) <= last:
            candidate = format_timestamp(last + timedelta(milliseconds=1))
        return candidate
