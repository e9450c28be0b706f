"""File system watcher over a JSON store directory (OS-level push events).

Any write to `<table>.json` (by this process or another) becomes a coarse
UPDATE event for that table. Events carry no record, so viewer-scoped
subscriptions treat them as matching.
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from unified_inbox.adapters.realtime.local_feed import LocalChangeFeed
from unified_inbox.ports.outbound import ChangeCallback, ChangeEvent, Unsubscribe

logger = logging.getLogger(__name__)


class TableFileHandler(FileSystemEventHandler):
    """Maps file events to table change events (no polling)."""

    def __init__(self, loop: asyncio.AbstractEventLoop, feed: LocalChangeFeed, debounce_seconds: float = 0.5):
        self._loop = loop
        self._feed = feed
        self._debounce_seconds = debounce_seconds
        self._last_event_time: Dict[str, float] = {}

    def _should_ignore(self, path: str) -> bool:
        return not path.endswith(".json")

    def _emit(self, path: str):
        table = Path(path).stem
        now = time.monotonic()
        last = self._last_event_time.get(table)
        if last is not None and now - last < self._debounce_seconds:
            return
        self._last_event_time[table] = now
        event = ChangeEvent(table=table, event_type="UPDATE")
        self._loop.call_soon_threadsafe(self._feed.publish, event)

    def on_modified(self, event):
        if event.is_directory or self._should_ignore(event.src_path):
            return
        self._emit(event.src_path)

    def on_created(self, event):
        if event.is_directory or self._should_ignore(event.src_path):
            return
        self._emit(event.src_path)

    def on_moved(self, event):
        # Atomic saves land as tmp -> <table>.json renames
        dest = getattr(event, "dest_path", "")
        if event.is_directory or self._should_ignore(dest):
            return
        self._emit(dest)


class StorageDirWatcher:
    """ChangeFeedPort backed by watchdog over a storage directory."""

    def __init__(self, storage_dir: str, feed: Optional[LocalChangeFeed] = None, debounce_seconds: float = 0.5):
        self._storage_dir = Path(storage_dir)
        self._feed = feed or LocalChangeFeed()
        self._debounce_seconds = debounce_seconds
        self._observer: Optional[Observer] = None

    @property
    def feed(self) -> LocalChangeFeed:
        return self._feed

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        events: Sequence[str] = ("*",),
        match: Optional[Dict[str, Any]] = None,
    ) -> Unsubscribe:
        return self._feed.subscribe(table, callback, events=events, match=match)

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if self._observer is not None:
            return
        loop = loop or asyncio.get_running_loop()
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        handler = TableFileHandler(loop, self._feed, self._debounce_seconds)
        observer = Observer()
        observer.schedule(handler, str(self._storage_dir), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Storage watcher started: %s", self._storage_dir)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Storage watcher stopped: %s", self._storage_dir)
