"""Relational key-value store backed by SQLAlchemy async sessions.

Plain values live in ``kv_store`` (one JSON document per key, the layout
older deployments already use); sets live in ``kv_set_members`` with one
row per member, so adding or removing an index entry is a single-row write.
Works on PostgreSQL (asyncpg) and SQLite (aiosqlite).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from sqlalchemy import delete, func, select, union
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

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
    StorageError,
    WrongKeyTypeError,
)
from hotel_pos.infrastructure.database.base import Base
from hotel_pos.infrastructure.database.models import KVEntryModel, KVSetMemberModel
from hotel_pos.infrastructure.kv.codec import decode_value, encode_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


def glob_to_like(pattern: str) -> str:
    """Translate a Redis-style glob (``*``, ``?``) into a LIKE pattern with ``\\`` escapes."""
    out = []
    for ch in pattern:
        if ch in ("%", "_", "\\"):
            out.append("\\" + ch)
        elif ch == "*":
            out.append("%")
        elif ch == "?":
            out.append("_")
        else:
            out.append(ch)
    return "".join(out)


class SQLKeyValueStore(KeyValueStore):
    """Implements the KeyValueStore port on top of two SQL tables.

    Each public call runs in its own transaction; ``execute`` applies a
    whole batch in one transaction.
    """

    backend_type = "sql"
    description = "Relational key-value storage (kv_store table)"
    is_persistent = True

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        timeout: float = 10.0,
    ):
        self._engine = engine
        self._session_factory = session_factory
        self._timeout = timeout

    async def initialize(self) -> None:
        """Create the backing tables if they do not exist yet."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(
                    Base.metadata.create_all,
                    tables=[KVEntryModel.__table__, KVSetMemberModel.__table__],
                )
            logger.debug("kv_store tables ready (%s)", self._engine.dialect.name)
        except (SQLAlchemyError, OSError) as exc:
            raise BackendUnavailableError(self.backend_type, f"could not create tables: {exc}") from exc

    # ── transaction runner ───────────────────────────────────────────

    async def _run(self, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async def _in_transaction() -> T:
            async with self._session_factory() as session:
                async with session.begin():
                    return await work(session)

        try:
            return await asyncio.wait_for(_in_transaction(), timeout=self._timeout)
        except StorageError:
            raise
        except asyncio.TimeoutError as exc:
            raise BackendUnavailableError(
                self.backend_type, f"operation timed out after {self._timeout}s"
            ) from exc
        except (SQLAlchemyError, OSError) as exc:
            raise BackendUnavailableError(self.backend_type, f"database error: {exc}") from exc

    # ── plain values ─────────────────────────────────────────────────

    async def get(self, key: str) -> Any | None:
        async def work(session: AsyncSession) -> Any | None:
            row = await session.get(KVEntryModel, key)
            if row is not None:
                return decode_value(row.value)
            if await self._has_set(session, key):
                raise WrongKeyTypeError(key, "plain value")
            return None

        return await self._run(work)

    async def get_many(self, keys: Sequence[str]) -> list[Any | None]:
        if not keys:
            return []

        async def work(session: AsyncSession) -> list[Any | None]:
            result = await session.execute(
                select(KVEntryModel.key, KVEntryModel.value).where(KVEntryModel.key.in_(set(keys)))
            )
            found = {row.key: row.value for row in result}
            return [decode_value(found.get(key)) for key in keys]

        return await self._run(work)

    async def set(self, key: str, value: Any) -> None:
        await self.execute([Put(key, value)])

    async def delete(self, key: str) -> bool:
        async def work(session: AsyncSession) -> bool:
            return await self._delete(session, key)

        return await self._run(work)

    async def keys(self, pattern: str = "*") -> list[str]:
        like = glob_to_like(pattern)

        async def work(session: AsyncSession) -> list[str]:
            stmt = union(
                select(KVEntryModel.key).where(KVEntryModel.key.like(like, escape="\\")),
                select(KVSetMemberModel.key).where(KVSetMemberModel.key.like(like, escape="\\")),
            )
            result = await session.execute(stmt)
            return sorted(result.scalars().all())

        return await self._run(work)

    async def key_type(self, key: str) -> str | None:
        async def work(session: AsyncSession) -> str | None:
            if await session.get(KVEntryModel, key) is not None:
                return "string"
            if await self._has_set(session, key):
                return "set"
            return None

        return await self._run(work)

    # ── sets ─────────────────────────────────────────────────────────

    async def set_add(self, key: str, *members: str) -> int:
        async def work(session: AsyncSession) -> int:
            return await self._set_add(session, key, members)

        return await self._run(work)

    async def set_remove(self, key: str, *members: str) -> int:
        async def work(session: AsyncSession) -> int:
            return await self._set_remove(session, key, members)

        return await self._run(work)

    async def set_members(self, key: str) -> set[str]:
        async def work(session: AsyncSession) -> set[str]:
            await self._check_set(session, key)
            result = await session.execute(
                select(KVSetMemberModel.member).where(KVSetMemberModel.key == key)
            )
            return set(result.scalars().all())

        return await self._run(work)

    # ── batches / health ─────────────────────────────────────────────

    async def execute(self, writes: Sequence[KVWrite]) -> None:
        async def work(session: AsyncSession) -> None:
            for write in writes:
                if isinstance(write, Put):
                    await self._put(session, write.key, write.value)
                elif isinstance(write, Delete):
                    await self._delete(session, write.key)
                elif isinstance(write, SetAdd):
                    await self._set_add(session, write.key, write.members)
                elif isinstance(write, SetRemove):
                    await self._set_remove(session, write.key, write.members)
                else:
                    raise TypeError(f"Unsupported write: {write!r}")

        await self._run(work)

    async def ping(self) -> bool:
        async def work(session: AsyncSession) -> bool:
            result = await session.execute(select(func.count()).select_from(KVEntryModel))
            result.scalar_one()
            return True

        return await self._run(work)

    async def close(self) -> None:
        await self._engine.dispose()

    # ── internals (run inside an open transaction) ───────────────────

    def _insert(self):
        dialect = self._engine.dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise BackendUnavailableError(self.backend_type, f"unsupported SQL dialect '{dialect}'")

    async def _has_set(self, session: AsyncSession, key: str) -> bool:
        result = await session.execute(
            select(KVSetMemberModel.key).where(KVSetMemberModel.key == key).limit(1)
        )
        return result.first() is not None

    async def _check_set(self, session: AsyncSession, key: str) -> None:
        if await session.get(KVEntryModel, key) is not None:
            raise WrongKeyTypeError(key, "set")

    async def _put(self, session: AsyncSession, key: str, value: Any) -> None:
        try:
            encoded = encode_value(value)
        except (TypeError, ValueError) as exc:
            raise InvalidPayloadError(key.split(":", 1)[0], f"not JSON-serialisable: {exc}") from exc
        now = datetime.now(timezone.utc)
        await session.execute(delete(KVSetMemberModel).where(KVSetMemberModel.key == key))
        insert = self._insert()
        stmt = insert(KVEntryModel).values(key=key, value=encoded, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[KVEntryModel.key],
            set_={"value": encoded, "updated_at": now},
        )
        await session.execute(stmt)

    async def _delete(self, session: AsyncSession, key: str) -> bool:
        values = await session.execute(delete(KVEntryModel).where(KVEntryModel.key == key))
        members = await session.execute(delete(KVSetMemberModel).where(KVSetMemberModel.key == key))
        return (values.rowcount or 0) + (members.rowcount or 0) > 0

    async def _set_add(self, session: AsyncSession, key: str, members: Sequence[str]) -> int:
        await self._check_set(session, key)
        if not members:
            return 0
        wanted = set(members)
        existing = await session.execute(
            select(KVSetMemberModel.member).where(
                KVSetMemberModel.key == key, KVSetMemberModel.member.in_(wanted)
            )
        )
        missing = wanted - set(existing.scalars().all())
        if missing:
            insert = self._insert()
            now = datetime.now(timezone.utc)
            stmt = insert(KVSetMemberModel).values(
                [{"key": key, "member": m, "created_at": now} for m in sorted(missing)]
            )
            await session.execute(stmt.on_conflict_do_nothing())
        return len(missing)

    async def _set_remove(self, session: AsyncSession, key: str, members: Sequence[str]) -> int:
        await self._check_set(session, key)
        if not members:
            return 0
        result = await session.execute(
            delete(KVSetMemberModel).where(
                KVSetMemberModel.key == key, KVSetMemberModel.member.in_(set(members))
            )
        )
        return result.rowcount or 0
