"""Shared plumbing for the source adapters."""

from datetime import datetime, timezone
from typing import Any, Callable, Collection, List, Optional, Sequence

from unified_inbox.domain.models import SourceType, UnifiedItem, make_item_id, truncate_preview
from unified_inbox.domain.records import EPOCH
from unified_inbox.ports.outbound import RecordStorePort, TableSubscription

NO_MESSAGES = "No messages yet"
UNKNOWN_TITLE = "Unknown"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseSourceAdapter:
    """Base for all five adapters. Subclasses set `source_type` and
    implement fetch_recent / is_unread / project / mark_read_bulk /
    count_unread / watched_tables.
    """

    source_type: SourceType

    def __init__(
        self,
        store: RecordStorePort,
        preview_chars: int = 80,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._preview_chars = preview_chars
        self._clock = clock or utc_now

    @property
    def store(self) -> RecordStorePort:
        return self._store

    def _now_iso(self) -> str:
        return self._clock().isoformat()

    def _item(
        self,
        native_id: str,
        title: Optional[str],
        preview: Optional[str],
        timestamp: Optional[datetime],
        action_type: str,
        action_id: str,
        raw: Any,
        *,
        title_fallback: str = UNKNOWN_TITLE,
        preview_fallback: str = "",
    ) -> UnifiedItem:
        return UnifiedItem(
            id=make_item_id(self.source_type, native_id),
            source_type=self.source_type,
            native_id=native_id,
            title=title or title_fallback,
            preview=truncate_preview(preview or preview_fallback, self._preview_chars),
            timestamp=timestamp or EPOCH,
            is_unread=False,
            action_type=action_type,
            action_id=action_id,
            raw=raw,
        )

    async def mark_read(self, native_id: str, viewer_id: str) -> None:
        await self.mark_read_bulk([native_id], viewer_id)

    async def mark_read_bulk(self, native_ids: Sequence[str], viewer_id: str) -> None:
        raise NotImplementedError

    async def count_unread(
        self,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> int:
        raise NotImplementedError

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]:
        raise NotImplementedError
