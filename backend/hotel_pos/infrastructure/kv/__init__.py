from .memory_store import InMemoryKeyValueStore
from .upstash_store import UpstashKeyValueStore
from .sql_store import SQLKeyValueStore
from .factory import build_key_value_store, resolve_backend

__all__ = [
    "InMemoryKeyValueStore",
    "UpstashKeyValueStore",
    "SQLKeyValueStore",
    "build_key_value_store",
    "resolve_backend",
]
