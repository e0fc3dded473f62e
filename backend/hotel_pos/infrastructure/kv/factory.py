"""Backend selection — picks the concrete KeyValueStore once, at startup."""

import logging

from hotel_pos.application.interfaces import KeyValueStore
from hotel_pos.config import Settings
from hotel_pos.infrastructure.database.session import build_engine, build_session_factory
from hotel_pos.infrastructure.kv.memory_store import InMemoryKeyValueStore
from hotel_pos.infrastructure.kv.sql_store import SQLKeyValueStore
from hotel_pos.infrastructure.kv.upstash_store import UpstashKeyValueStore

logger = logging.getLogger(__name__)


def resolve_backend(settings: Settings) -> str:
    """Decide which backend the settings select, falling back to memory.

    Missing credentials never fail startup: they select the non-persistent
    fallback and log a warning instead.
    """
    requested = settings.storage_backend
    if requested == "auto":
        if settings.has_kv_credentials:
            return "upstash"
        if settings.database_url.strip():
            return "sql"
        logger.warning(
            "No storage credentials configured; using the in-memory fallback "
            "(data will be lost on restart)"
        )
        return "memory"
    if requested == "upstash" and not settings.has_kv_credentials:
        logger.warning(
            "STORAGE_BACKEND=upstash but KV_REST_API_URL / KV_REST_API_TOKEN are missing; "
            "using the in-memory fallback"
        )
        return "memory"
    if requested == "sql" and not settings.database_url.strip():
        logger.warning("STORAGE_BACKEND=sql but DATABASE_URL is missing; using the in-memory fallback")
        return "memory"
    return requested


async def build_key_value_store(settings: Settings) -> KeyValueStore:
    """Construct (and for SQL, initialise) the configured backend."""
    backend = resolve_backend(settings)

    if backend == "upstash":
        store: KeyValueStore = UpstashKeyValueStore(
            url=settings.kv_rest_api_url.strip(),
            token=settings.kv_rest_api_token.strip(),
            timeout=settings.storage_timeout_seconds,
        )
    elif backend == "sql":
        engine = build_engine(settings.database_url.strip())
        sql_store = SQLKeyValueStore(
            engine=engine,
            session_factory=build_session_factory(engine),
            timeout=settings.storage_timeout_seconds,
        )
        await sql_store.initialize()
        store = sql_store
    else:
        store = InMemoryKeyValueStore()

    logger.info("Storage backend selected: %s (%s)", store.backend_type, store.description)
    return store
