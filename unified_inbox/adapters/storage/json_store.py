"""JSON file-based record store — implements RecordStorePort.

One `<table>.json` file per table, each a list of row dicts. Writes are
atomic (temp file + os.replace) so the directory watcher never sees a
half-written table.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from unified_inbox.adapters.storage.row_filter import apply_query, matches, matches_values
from unified_inbox.errors import StoreError
from unified_inbox.ports.outbound import ChangeEvent
from unified_inbox.ports.query import Query

logger = logging.getLogger(__name__)


class JsonRecordStore:
    """File-based JSON storage implementing RecordStorePort protocol."""

    def __init__(self, storage_dir: str = "inbox_data", change_feed=None):
        self._storage_dir = Path(storage_dir)
        self._storage_dir.mkdir(parents=True, exist_ok=True)
        self._change_feed = change_feed
        self._lock = asyncio.Lock()

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def _path(self, table: str) -> Path:
        return self._storage_dir / f"{table}.json"

    def load(self, table: str) -> List[Dict[str, Any]]:
        path = self._path(table)
        if not path.exists():
            return []
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(f"Failed to read table {table!r}: {e}") from e
        return raw if isinstance(raw, list) else []

    def save(self, table: str, rows: List[Dict[str, Any]]) -> None:
        path = self._path(table)
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(rows, ensure_ascii=False, indent=2, default=str)
        # Atomic write
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, str(path))
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def _notify(self, table: str, event_type: str, record: Dict[str, Any]) -> None:
        if self._change_feed is not None:
            self._change_feed.publish(ChangeEvent(table, event_type, dict(record)))

    async def select(self, query: Query) -> List[Dict[str, Any]]:
        if query.is_empty_in:
            return []
        return apply_query(self.load(query.table), query)

    async def count(self, query: Query) -> int:
        if query.is_empty_in:
            return 0
        return sum(1 for row in self.load(query.table) if matches(row, query))

    async def update(self, query: Query, values: Dict[str, Any]) -> int:
        if query.is_empty_in:
            return 0
        async with self._lock:
            rows = self.load(query.table)
            changed = []
            for row in rows:
                if matches(row, query):
                    row.update(values)
                    changed.append(row)
            if changed:
                self.save(query.table, rows)
        for row in changed:
            self._notify(query.table, "UPDATE", row)
        return len(changed)

    async def upsert(
        self,
        table: str,
        rows: Sequence[Dict[str, Any]],
        on_conflict: Sequence[str],
    ) -> None:
        if not rows:
            return
        events = []
        async with self._lock:
            existing = self.load(table)
            for row in rows:
                key = {col: row.get(col) for col in on_conflict}
                target: Optional[Dict[str, Any]] = next(
                    (r for r in existing if matches_values(r, key)), None
                )
                if target is None:
                    existing.append(dict(row))
                    events.append(("INSERT", dict(row)))
                else:
                    target.update(row)
                    events.append(("UPDATE", dict(target)))
            self.save(table, existing)
        logger.debug("Upserted %d row(s) into %s", len(rows), table)
        for event_type, record in events:
            self._notify(table, event_type, record)

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        async with self._lock:
            existing = self.load(table)
            kept = [r for r in existing if not matches_values(r, match)]
            removed = [r for r in existing if matches_values(r, match)]
            if removed:
                self.save(table, kept)
        for row in removed:
            self._notify(table, "DELETE", row)
        return len(removed)
