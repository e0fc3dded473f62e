"""Key naming convention shared by every backend.

Records live at ``<collection>:<id>``, the primary index at
``<collection>:index`` and bucket (secondary) indexes at
``<collection>:<bucket>:index``. These names must stay bit-exact so that
data written by older deployments remains readable.
"""

from hotel_pos.domain.exceptions import InvalidCollectionError

SEPARATOR = ":"
INDEX_SUFFIX = "index"

_FORBIDDEN = frozenset(":*?[]")


def validate_collection(collection: str) -> str:
    """Return *collection* unchanged, or raise if it cannot be a key prefix."""
    if not isinstance(collection, str) or not collection:
        raise InvalidCollectionError(str(collection), "collection name must be a non-empty string")
    if _FORBIDDEN.intersection(collection):
        raise InvalidCollectionError(collection, "collection name contains a reserved character")
    return collection


def record_key(collection: str, record_id: str) -> str:
    return f"{collection}{SEPARATOR}{record_id}"


def index_key(collection: str) -> str:
    return f"{collection}{SEPARATOR}{INDEX_SUFFIX}"


def bucket_index_key(collection: str, bucket: str) -> str:
    return f"{collection}{SEPARATOR}{bucket}{SEPARATOR}{INDEX_SUFFIX}"


def is_record_id(record_id: str) -> bool:
    """True when *record_id* names a record key rather than an index key."""
    return (
        isinstance(record_id, str)
        and bool(record_id)
        and SEPARATOR not in record_id
        and record_id != INDEX_SUFFIX
    )


def collection_pattern(collection: str) -> str:
    """Glob pattern matching every key under a collection prefix."""
    return f"{collection}{SEPARATOR}*"


def is_index_key(key: str) -> bool:
    return key.endswith(f"{SEPARATOR}{INDEX_SUFFIX}")


def record_id_from_key(collection: str, key: str) -> str | None:
    """Extract the record ID from a data key, or None for index/foreign keys."""
    prefix = f"{collection}{SEPARATOR}"
    if not key.startswith(prefix) or is_index_key(key):
        return None
    record_id = key[len(prefix):]
    if not record_id or SEPARATOR in record_id:
        return None
    return record_id
