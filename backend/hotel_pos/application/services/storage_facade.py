"""Storage facade — the one CRUD surface API handlers and tools talk to.

Hides which backend is active, applies the optional per-collection record
validators and makes sure nothing but the storage error taxonomy escapes.
"""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel

from hotel_pos.application.interfaces import KeyValueStore
from hotel_pos.application.schemas.collections import validate_record
from hotel_pos.application.services.entity_store import EntityStore, Record, ensure_mapping
from hotel_pos.application.services.index_maintainer import IndexMaintainer
from hotel_pos.domain.collections import KNOWN_COLLECTIONS
from hotel_pos.domain.entities import BackendInfo, ConnectionStatus
from hotel_pos.domain.exceptions import (
    BackendUnavailableError,
    EntityNotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)


class StorageFacade:
    """Orchestrates entity CRUD over whichever backend was configured at startup."""

    def __init__(
        self,
        store: EntityStore,
        maintainer: IndexMaintainer,
        kv: KeyValueStore,
        validators: dict[str, type[BaseModel]] | None = None,
    ):
        self._store = store
        self._maintainer = maintainer
        self._kv = kv
        self._validators = validators

    @classmethod
    def for_backend(cls, kv: KeyValueStore, *, validate_records: bool = True) -> "StorageFacade":
        """Wire an entity store and index maintainer onto *kv*."""
        maintainer = IndexMaintainer(kv)
        store = EntityStore(kv, maintainer)
        return cls(store, maintainer, kv, validators=None if validate_records else {})

    @property
    def kv(self) -> KeyValueStore:
        return self._kv

    @property
    def maintainer(self) -> IndexMaintainer:
        return self._maintainer

    @contextmanager
    def _normalized(self) -> Iterator[None]:
        try:
            yield
        except StorageError:
            raise
        except Exception as exc:
            logger.exception("Unexpected %s from %s backend", type(exc).__name__, self._kv.backend_type)
            raise BackendUnavailableError(self._kv.backend_type, str(exc) or type(exc).__name__) from exc

    def _validate(self, collection: str, record: dict[str, Any]) -> None:
        validate_record(collection, record, self._validators)

    # ── CRUD ─────────────────────────────────────────────────────────

    async def get_all(self, collection: str) -> list[Record]:
        with self._normalized():
            return await self._store.get_all(collection)

    async def get(self, collection: str, record_id: str) -> Record:
        with self._normalized():
            record = await self._store.get(collection, record_id)
        if record is None:
            raise EntityNotFoundError(collection, record_id)
        return record

    async def create(self, collection: str, data: Any) -> Record:
        with self._normalized():
            self._validate(collection, ensure_mapping(collection, data))
            return await self._store.create(collection, data)

    async def update(self, collection: str, record_id: str, patch: Any) -> Record:
        with self._normalized():
            changes = ensure_mapping(collection, patch)
            existing = await self._store.get(collection, record_id)
            if existing is None:
                raise EntityNotFoundError(collection, record_id)
            self._validate(collection, {**existing, **changes})
            return await self._store.update(collection, record_id, changes)

    async def delete(self, collection: str, record_id: str) -> bool:
        with self._normalized():
            return await self._store.delete(collection, record_id)

    async def put(
        self, collection: str, record_id: str, data: Any, *, validate: bool = True
    ) -> Record:
        """Create or replace under a fixed ID. Restores pass ``validate=False``."""
        with self._normalized():
            fields = ensure_mapping(collection, data)
            if validate:
                self._validate(collection, fields)
            return await self._store.put(collection, record_id, fields)

    async def get_index(self, collection: str) -> list[str]:
        with self._normalized():
            return await self._store.get_index(collection)

    def generate_id(self) -> str:
        return self._store.generate_id()

    # ── diagnostics ──────────────────────────────────────────────────

    def backend_info(self) -> BackendInfo:
        return self._kv.info()

    async def connection_status(self) -> ConnectionStatus:
        with self._normalized():
            return await self._kv.connection_status()

    async def collection_stats(
        self, collections: Iterable[str] = KNOWN_COLLECTIONS
    ) -> dict[str, int | str]:
        """Record count per collection; ``"error"`` where the count failed."""
        stats: dict[str, int | str] = {}
        for collection in collections:
            try:
                with self._normalized():
                    stats[collection] = await self._store.count(collection)
            except StorageError as exc:
                logger.warning("Could not count '%s': %s", collection, exc)
                stats[collection] = "error"
        return stats

    async def close(self) -> None:
        await self._kv.close()
