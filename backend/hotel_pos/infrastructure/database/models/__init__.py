from .kv_entry import KVEntryModel, KVSetMemberModel

__all__ = [
    "KVEntryModel",
    "KVSetMemberModel",
]
