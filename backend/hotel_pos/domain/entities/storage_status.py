"""Value objects describing the active storage backend."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class BackendInfo:
    """Static description of a backend, exposed by diagnostics endpoints."""

    type: str
    description: str
    persistent: bool


@dataclass
class ConnectionStatus:
    """Result of probing the active backend.

    ``is_real_connection`` is False for the in-memory fallback, whatever its
    health; operations that must not write to volatile storage check it.
    """

    backend: str
    connected: bool
    is_real_connection: bool
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
