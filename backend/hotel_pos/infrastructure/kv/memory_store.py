"""In-process key-value store used when no real backend is configured.

Nothing survives a restart. Values are kept JSON-encoded so callers get
fresh copies on every read, just as they would from a remote store.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Sequence
from typing import Any

from hotel_pos.application.interfaces import (
    Delete,
    KeyValueStore,
    KVWrite,
    Put,
    SetAdd,
    SetRemove,
)
from hotel_pos.domain.exceptions import InvalidPayloadError, WrongKeyTypeError
from hotel_pos.infrastructure.kv.codec import decode_value, encode_value


class InMemoryKeyValueStore(KeyValueStore):
    """Fallback backend — a pair of dicts guarded by the event loop.

    No method awaits between reading and writing state, so each call (and
    each ``execute`` batch) runs as one uninterrupted step.
    """

    backend_type = "memory"
    description = "In-memory fallback storage (not persistent)"
    is_persistent = False

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._sets: dict[str, set[str]] = {}

    # ── plain values ─────────────────────────────────────────────────

    async def get(self, key: str) -> Any | None:
        if key in self._sets:
            raise WrongKeyTypeError(key, "plain value")
        raw = self._values.get(key)
        return decode_value(raw)

    async def get_many(self, keys: Sequence[str]) -> list[Any | None]:
        return [decode_value(self._values.get(key)) for key in keys]

    async def set(self, key: str, value: Any) -> None:
        self._apply(Put(key, value))

    async def delete(self, key: str) -> bool:
        existed = key in self._values or key in self._sets
        self._apply(Delete(key))
        return existed

    async def keys(self, pattern: str = "*") -> list[str]:
        names = list(self._values) + list(self._sets)
        return sorted(k for k in names if fnmatch.fnmatchcase(k, pattern))

    async def key_type(self, key: str) -> str | None:
        if key in self._values:
            return "string"
        if key in self._sets:
            return "set"
        return None

    # ── sets ─────────────────────────────────────────────────────────

    async def set_add(self, key: str, *members: str) -> int:
        self._check_set(key)
        current = self._sets.get(key, set())
        added = len(set(members) - current)
        self._apply(SetAdd(key, tuple(members)))
        return added

    async def set_remove(self, key: str, *members: str) -> int:
        self._check_set(key)
        current = self._sets.get(key, set())
        removed = len(set(members) & current)
        self._apply(SetRemove(key, tuple(members)))
        return removed

    async def set_members(self, key: str) -> set[str]:
        self._check_set(key)
        return set(self._sets.get(key, ()))

    # ── batches / health ─────────────────────────────────────────────

    async def execute(self, writes: Sequence[KVWrite]) -> None:
        # Validate the whole batch first so a bad write leaves nothing applied.
        shadow: dict[str, str | None] = {}
        for write in writes:
            if isinstance(write, Put):
                self._encode(write.key, write.value)
                shadow[write.key] = "string"
            elif isinstance(write, Delete):
                shadow[write.key] = None
            else:
                kind = shadow[write.key] if write.key in shadow else await self.key_type(write.key)
                if kind == "string":
                    raise WrongKeyTypeError(write.key, "set")
        for write in writes:
            self._apply(write)

    async def ping(self) -> bool:
        return True

    def clear(self) -> None:
        self._values.clear()
        self._sets.clear()

    def __len__(self) -> int:
        return len(self._values) + len(self._sets)

    # ── internals ────────────────────────────────────────────────────

    def _check_set(self, key: str) -> None:
        if key in self._values:
            raise WrongKeyTypeError(key, "set")

    @staticmethod
    def _encode(key: str, value: Any) -> str:
        try:
            return encode_value(value)
        except (TypeError, ValueError) as exc:
            raise InvalidPayloadError(key.split(":", 1)[0], f"not JSON-serialisable: {exc}") from exc

    def _apply(self, write: KVWrite) -> None:
        if isinstance(write, Put):
            encoded = self._encode(write.key, write.value)
            self._sets.pop(write.key, None)
            self._values[write.key] = encoded
        elif isinstance(write, Delete):
            self._values.pop(write.key, None)
            self._sets.pop(write.key, None)
        elif isinstance(write, SetAdd):
            if write.members:
                self._sets.setdefault(write.key, set()).update(write.members)
        elif isinstance(write, SetRemove):
            members = self._sets.get(write.key)
            if members is not None:
                members.difference_update(write.members)
                if not members:
                    del self._sets[write.key]
