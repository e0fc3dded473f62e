"""Abstract key-value port — the primitive every entity collection is built on.

Implementations live in the infrastructure layer (in-memory fallback,
Upstash REST, SQL). Values are JSON-serialisable documents; indexes are
native string sets manipulated through the ``set_*`` methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from hotel_pos.domain.entities import BackendInfo, ConnectionStatus
from hotel_pos.domain.exceptions import BackendUnavailableError


@dataclass(frozen=True)
class Put:
    """Write *value* at *key*, replacing whatever was there."""

    key: str
    value: Any


@dataclass(frozen=True)
class Delete:
    key: str


@dataclass(frozen=True)
class SetAdd:
    key: str
    members: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SetRemove:
    key: str
    members: tuple[str, ...] = field(default_factory=tuple)


KVWrite = Put | Delete | SetAdd | SetRemove


class KeyValueStore(ABC):
    """Port for flat string-keyed storage — implemented in the infrastructure layer.

    Every method is a potential suspension point. Backend failures surface as
    ``BackendUnavailableError``; implementations never retry.
    """

    backend_type: str = "abstract"
    description: str = ""
    is_persistent: bool = True

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the decoded value stored at *key*, or None."""
        ...

    async def get_many(self, keys: Sequence[str]) -> list[Any | None]:
        """Return the values for *keys* in order, None where absent."""
        return [await self.get(key) for key in keys]

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store *value* at *key*."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*. Returns True if something was removed."""
        ...

    @abstractmethod
    async def keys(self, pattern: str = "*") -> list[str]:
        """List keys matching a glob *pattern*. Diagnostic use only."""
        ...

    @abstractmethod
    async def set_add(self, key: str, *members: str) -> int:
        """Add members to the set at *key*. Returns how many were new."""
        ...

    @abstractmethod
    async def set_remove(self, key: str, *members: str) -> int:
        """Remove members from the set at *key*. Returns how many were present."""
        ...

    @abstractmethod
    async def set_members(self, key: str) -> set[str]:
        """Return the members of the set at *key* (empty if absent)."""
        ...

    @abstractmethod
    async def key_type(self, key: str) -> str | None:
        """Return ``"string"`` for plain values, ``"set"`` for sets, None if absent."""
        ...

    @abstractmethod
    async def execute(self, writes: Sequence[KVWrite]) -> None:
        """Apply a batch of writes atomically."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Round-trip to the backend. Raises on connectivity failure."""
        ...

    async def close(self) -> None:
        """Release network resources. No-op by default."""
        return None

    def info(self) -> BackendInfo:
        return BackendInfo(
            type=self.backend_type,
            description=self.description,
            persistent=self.is_persistent,
        )

    async def connection_status(self) -> ConnectionStatus:
        """Probe the backend and report whether it is a real, reachable store."""
        try:
            await self.ping()
        except BackendUnavailableError as exc:
            return ConnectionStatus(
                backend=self.backend_type,
                connected=False,
                is_real_connection=False,
                message=exc.message,
            )
        return ConnectionStatus(
            backend=self.backend_type,
            connected=True,
            is_real_connection=self.is_persistent,
            message=self.description,
        )
