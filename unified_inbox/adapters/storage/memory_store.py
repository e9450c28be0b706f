"""In-memory record store — implements RecordStorePort."""

import copy
from typing import Any, Dict, List, Optional, Sequence

from unified_inbox.adapters.storage.row_filter import apply_query, matches, matches_values
from unified_inbox.ports.outbound import ChangeEvent
from unified_inbox.ports.query import Query


class MemoryRecordStore:
    """Dict-of-lists tables. Publishes change events when given a feed."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None, change_feed=None):
        self._tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self._change_feed = change_feed

    def rows(self, table: str) -> List[Dict[str, Any]]:
        """Snapshot copy of a table, for inspection."""
        return copy.deepcopy(self._tables.get(table, []))

    def insert(self, table: str, row: Dict[str, Any]) -> None:
        self._tables.setdefault(table, []).append(dict(row))
        self._notify(table, "INSERT", row)

    def _notify(self, table: str, event_type: str, record: Dict[str, Any]) -> None:
        if self._change_feed is not None:
            self._change_feed.publish(ChangeEvent(table, event_type, dict(record)))

    async def select(self, query: Query) -> List[Dict[str, Any]]:
        if query.is_empty_in:
            return []
        return copy.deepcopy(apply_query(self._tables.get(query.table, []), query))

    async def count(self, query: Query) -> int:
        if query.is_empty_in:
            return 0
        return sum(1 for row in self._tables.get(query.table, []) if matches(row, query))

    async def update(self, query: Query, values: Dict[str, Any]) -> int:
        if query.is_empty_in:
            return 0
        changed = []
        for row in self._tables.get(query.table, []):
            if matches(row, query):
                row.update(values)
                changed.append(dict(row))
        for row in changed:
            self._notify(query.table, "UPDATE", row)
        return len(changed)

    async def upsert(
        self,
        table: str,
        rows: Sequence[Dict[str, Any]],
        on_conflict: Sequence[str],
    ) -> None:
        existing = self._tables.setdefault(table, [])
        events = []
        for row in rows:
            key = {col: row.get(col) for col in on_conflict}
            target = next((r for r in existing if matches_values(r, key)), None)
            if target is None:
                existing.append(dict(row))
                events.append(("INSERT", dict(row)))
            else:
                target.update(row)
                events.append(("UPDATE", dict(target)))
        for event_type, record in events:
            self._notify(table, event_type, record)

    async def delete(self, table: str, match: Dict[str, Any]) -> int:
        existing = self._tables.get(table, [])
        removed = [r for r in existing if matches_values(r, match)]
        if removed:
            self._tables[table] = [r for r in existing if not matches_values(r, match)]
        for row in removed:
            self._notify(table, "DELETE", row)
        return len(removed)
