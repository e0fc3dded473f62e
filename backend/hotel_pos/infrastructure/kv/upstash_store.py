"""Upstash Redis REST client — implements the KeyValueStore port.

Talks to the Upstash REST API (``POST <url>`` with a JSON command array,
``/multi-exec`` for transactions) using httpx. Indexes map onto native Redis
sets, so concurrent creates cannot drop each other's IDs.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from hotel_pos.application.interfaces import (
    Delete,
    KeyValueStore,
    KVWrite,
    Put,
    SetAdd,
    SetRemove,
)
from hotel_pos.domain.exceptions import (
    BackendUnavailableError,
    InvalidPayloadError,
    WrongKeyTypeError,
)
from hotel_pos.infrastructure.kv.codec import decode_value, encode_value

logger = logging.getLogger(__name__)

_SCAN_COUNT = 1000


class UpstashKeyValueStore(KeyValueStore):
    """Infrastructure adapter — connects to an Upstash (Vercel KV) database.

    One ``httpx.AsyncClient`` is created per store and reused for every
    request; it is closed by :meth:`close`.
    """

    backend_type = "upstash"
    description = "Upstash Redis (Vercel KV) REST storage"
    is_persistent = True

    def __init__(
        self,
        url: str,
        token: str,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        if not url or not token:
            raise BackendUnavailableError(self.backend_type, "REST URL and token are required")
        self._url = url.rstrip("/")
        self._token = token
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    def _get_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    # ── transport ────────────────────────────────────────────────────

    async def _post(self, path: str, payload: list) -> Any:
        try:
            response = await self._http_client.post(
                f"{self._url}{path}", headers=self._get_headers(), json=payload
            )
        except httpx.TimeoutException as exc:
            raise BackendUnavailableError(self.backend_type, f"request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise BackendUnavailableError(self.backend_type, f"request failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise BackendUnavailableError(self.backend_type, "credentials rejected by the server")
        try:
            data = response.json()
        except ValueError as exc:
            raise BackendUnavailableError(
                self.backend_type, f"unexpected response ({response.status_code})"
            ) from exc
        if response.status_code >= 500:
            raise BackendUnavailableError(
                self.backend_type, f"server error ({response.status_code})"
            )
        return data

    def _unwrap(self, data: Any, key: str | None, expected: str) -> Any:
        """Return ``result`` from an Upstash reply, translating ``error``."""
        if not isinstance(data, dict):
            raise BackendUnavailableError(self.backend_type, "malformed reply")
        if "error" in data:
            message = str(data["error"])
            if message.startswith("WRONGTYPE") and key is not None:
                raise WrongKeyTypeError(key, expected)
            raise BackendUnavailableError(self.backend_type, message)
        return data.get("result")

    async def _command(self, *args: Any, key: str | None = None, expected: str = "set") -> Any:
        data = await self._post("", [str(a) for a in args])
        return self._unwrap(data, key, expected)

    # ── plain values ─────────────────────────────────────────────────

    async def get(self, key: str) -> Any | None:
        raw = await self._command("GET", key, key=key, expected="plain value")
        return decode_value(raw)

    async def get_many(self, keys: Sequence[str]) -> list[Any | None]:
        if not keys:
            return []
        raw = await self._command("MGET", *keys)
        return [decode_value(item) for item in raw or []]

    async def set(self, key: str, value: Any) -> None:
        await self._command("SET", key, self._encode(key, value))

    async def delete(self, key: str) -> bool:
        removed = await self._command("DEL", key)
        return int(removed or 0) > 0

    async def keys(self, pattern: str = "*") -> list[str]:
        found: set[str] = set()
        cursor = "0"
        while True:
            result = await self._command("SCAN", cursor, "MATCH", pattern, "COUNT", _SCAN_COUNT)
            cursor, batch = str(result[0]), result[1]
            found.update(batch)
            if cursor == "0":
                break
        return sorted(found)

    async def key_type(self, key: str) -> str | None:
        kind = await self._command("TYPE", key)
        return None if kind in (None, "none") else str(kind)

    # ── sets ─────────────────────────────────────────────────────────

    async def set_add(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return int(await self._command("SADD", key, *members, key=key))

    async def set_remove(self, key: str, *members: str) -> int:
        if not members:
            return 0
        return int(await self._command("SREM", key, *members, key=key))

    async def set_members(self, key: str) -> set[str]:
        result = await self._command("SMEMBERS", key, key=key)
        return set(result or [])

    # ── batches / health ─────────────────────────────────────────────

    async def execute(self, writes: Sequence[KVWrite]) -> None:
        pending = [(w, self._to_command(w)) for w in writes]
        pending = [(w, c) for w, c in pending if c is not None]
        if not pending:
            return
        await self._check_set_keys([w for w, _ in pending])
        logger.debug("multi-exec with %d command(s)", len(pending))
        data = await self._post("/multi-exec", [c for _, c in pending])
        if isinstance(data, dict):
            self._unwrap(data, None, "set")
            return
        for (write, _), reply in zip(pending, data):
            self._unwrap(reply, write.key, "set")

    async def ping(self) -> bool:
        return await self._command("PING") == "PONG"

    async def close(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    # ── internals ────────────────────────────────────────────────────

    async def _check_set_keys(self, writes: Sequence[KVWrite]) -> None:
        """Raise before submitting when a set write would hit a plain value.

        MULTI/EXEC does not roll back on WRONGTYPE, so the record write
        earlier in the batch would otherwise land without its index entry.
        """
        shadow: dict[str, str | None] = {}
        for write in writes:
            if isinstance(write, Put):
                shadow[write.key] = "string"
            elif isinstance(write, Delete):
                shadow[write.key] = None
            elif write.key not in shadow:
                shadow[write.key] = await self.key_type(write.key)
                if shadow[write.key] == "string":
                    raise WrongKeyTypeError(write.key, "set")

    @staticmethod
    def _encode(key: str, value: Any) -> str:
        try:
            return encode_value(value)
        except (TypeError, ValueError) as exc:
            raise InvalidPayloadError(key.split(":", 1)[0], f"not JSON-serialisable: {exc}") from exc

    def _to_command(self, write: KVWrite) -> list[str] | None:
        if isinstance(write, Put):
            return ["SET", write.key, self._encode(write.key, write.value)]
        if isinstance(write, Delete):
            return ["DEL", write.key]
        if isinstance(write, SetAdd):
            return ["SADD", write.key, *write.members] if write.members else None
        if isinstance(write, SetRemove):
            return ["SREM", write.key, *write.members] if write.members else None
        raise TypeError(f"Unsupported write: {write!r}")
