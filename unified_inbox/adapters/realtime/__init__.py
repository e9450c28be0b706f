"""Change feed adapters."""

from unified_inbox.adapters.realtime.file_watcher import StorageDirWatcher, TableFileHandler
from unified_inbox.adapters.realtime.local_feed import LocalChangeFeed

__all__ = [
    "LocalChangeFeed",
    "StorageDirWatcher",
    "TableFileHandler",
]
