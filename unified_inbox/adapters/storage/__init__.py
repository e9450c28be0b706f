"""Record store adapters."""

from unified_inbox.adapters.storage.json_store import JsonRecordStore
from unified_inbox.adapters.storage.memory_store import MemoryRecordStore
from unified_inbox.adapters.storage.postgrest_store import PostgrestRecordStore

__all__ = [
    "JsonRecordStore",
    "MemoryRecordStore",
    "PostgrestRecordStore",
]
