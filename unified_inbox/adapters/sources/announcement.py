"""Broadcast announcements (company_messages + company_message_reads)."""

from typing import Collection, List, Sequence, Set

from unified_inbox.adapters.sources.base import BaseSourceAdapter
from unified_inbox.domain.models import SourceType, UnifiedItem
from unified_inbox.domain.records import Announcement
from unified_inbox.ports.outbound import TableSubscription
from unified_inbox.ports.query import Query

MESSAGES_TABLE = "company_messages"
READS_TABLE = "company_message_reads"


class AnnouncementAdapter(BaseSourceAdapter):
    """Read marker: a company_message_reads row for (message, viewer)."""

    source_type = SourceType.ANNOUNCEMENT

    def _published(self, limit: int) -> Query:
        return (
            Query(MESSAGES_TABLE)
            .eq("status", "published")
            .order("published_at", descending=True, nulls_last=True)
            .limit(limit)
        )

    async def _read_ids(self, viewer_id: str, message_ids: List[str]) -> Set[str]:
        if not message_ids:
            return set()
        rows = await self._store.select(
            Query(READS_TABLE)
            .eq("user_id", viewer_id)
            .in_("message_id", message_ids)
            .select("message_id")
        )
        return {str(row["message_id"]) for row in rows}

    async def fetch_recent(self, viewer_id: str, limit: int) -> List[Announcement]:
        rows = await self._store.select(self._published(limit))
        read_ids = await self._read_ids(viewer_id, [str(row["id"]) for row in rows])
        return [
            Announcement.from_row(row, read_by=[viewer_id] if str(row["id"]) in read_ids else [])
            for row in rows
        ]

    def is_unread(self, record: Announcement, viewer_id: str) -> bool:
        return viewer_id not in record.read_by

    def project(self, record: Announcement) -> UnifiedItem:
        return self._item(
            native_id=record.id,
            title=record.title,
            preview=record.body,
            timestamp=record.published_at or record.created_at,
            action_type="announcement",
            action_id=record.id,
            raw=record,
            title_fallback="Company Update",
        )

    async def mark_read_bulk(self, native_ids: Sequence[str], viewer_id: str) -> None:
        if not native_ids:
            return
        now = self._now_iso()
        rows = [
            {"message_id": native_id, "user_id": viewer_id, "read_at": now}
            for native_id in native_ids
        ]
        await self._store.upsert(READS_TABLE, rows, on_conflict=("message_id", "user_id"))

    async def count_unread(
        self,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> int:
        rows = await self._store.select(self._published(limit).select("id"))
        excluded = set(exclude_ids)
        window = [str(row["id"]) for row in rows if str(row["id"]) not in excluded]
        read_ids = await self._read_ids(viewer_id, window)
        return sum(1 for message_id in window if message_id not in read_ids)

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]:
        return [
            TableSubscription(MESSAGES_TABLE),
            TableSubscription(READS_TABLE, match={"user_id": viewer_id}),
        ]
