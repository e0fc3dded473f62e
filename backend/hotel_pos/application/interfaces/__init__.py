from .key_value_store import Delete, KeyValueStore, KVWrite, Put, SetAdd, SetRemove

__all__ = [
    "KeyValueStore",
    "KVWrite",
    "Put",
    "Delete",
    "SetAdd",
    "SetRemove",
]
