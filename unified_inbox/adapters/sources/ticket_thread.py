"""Support-ticket discussion threads (tickets + ticket_comments + ticket_reads).

A ticket is unread when its latest comment came from someone other than the
viewer and the viewer has not opened it since that activity. Tickets carry
the latest comment's author and preview denormalised on the ticket row.
"""

from datetime import datetime
from typing import Any, Collection, Dict, List, Optional, Sequence

from unified_inbox.adapters.sources.base import BaseSourceAdapter
from unified_inbox.domain.models import SourceType, UnifiedItem
from unified_inbox.domain.records import TicketThread, parse_timestamp
from unified_inbox.ports.outbound import TableSubscription
from unified_inbox.ports.query import Query, cond

TICKETS_TABLE = "tickets"
COMMENTS_TABLE = "ticket_comments"
READS_TABLE = "ticket_reads"


def has_unseen_activity(
    viewer_id: str,
    last_comment_author_id: Any,
    last_activity_at: Optional[datetime],
    viewer_last_read_at: Optional[datetime],
) -> bool:
    if not last_comment_author_id or str(last_comment_author_id) == viewer_id:
        return False
    if viewer_last_read_at is None:
        return True
    if last_activity_at is None:
        return False
    return viewer_last_read_at < last_activity_at


class TicketThreadAdapter(BaseSourceAdapter):
    source_type = SourceType.TICKET_THREAD

    def _involving(self, viewer_id: str, limit: int) -> Query:
        return (
            Query(TICKETS_TABLE)
            .or_(
                cond("submitter_id", "eq", viewer_id),
                cond("assignee_id", "eq", viewer_id),
                cond("watcher_ids", "cs", viewer_id),
            )
            .order("last_activity_at", descending=True, nulls_last=True)
            .limit(limit)
        )

    async def _last_reads(self, viewer_id: str, ticket_ids: List[str]) -> Dict[str, Optional[datetime]]:
        if not ticket_ids:
            return {}
        rows = await self._store.select(
            Query(READS_TABLE)
            .eq("user_id", viewer_id)
            .in_("ticket_id", ticket_ids)
            .select("ticket_id", "last_read_at")
        )
        return {str(row["ticket_id"]): parse_timestamp(row.get("last_read_at")) for row in rows}

    async def fetch_recent(self, viewer_id: str, limit: int) -> List[TicketThread]:
        rows = await self._store.select(self._involving(viewer_id, limit))
        reads = await self._last_reads(viewer_id, [str(row["id"]) for row in rows])
        return [TicketThread.from_row(row, reads.get(str(row["id"]))) for row in rows]

    def is_unread(self, record: TicketThread, viewer_id: str) -> bool:
        return has_unseen_activity(
            viewer_id,
            record.last_comment_author_id,
            record.last_activity_at or record.created_at,
            record.viewer_last_read_at,
        )

    def project(self, record: TicketThread) -> UnifiedItem:
        return self._item(
            native_id=record.id,
            title=record.subject,
            preview=record.last_comment_preview or record.description,
            timestamp=record.last_activity_at or record.created_at,
            action_type="ticket",
            action_id=record.id,
            raw=record,
            title_fallback=f"Ticket #{record.id}",
            preview_fallback="No comments yet",
        )

    async def mark_read_bulk(self, native_ids: Sequence[str], viewer_id: str) -> None:
        if not native_ids:
            return
        now = self._now_iso()
        rows = [
            {"ticket_id": native_id, "user_id": viewer_id, "last_read_at": now}
            for native_id in native_ids
        ]
        await self._store.upsert(READS_TABLE, rows, on_conflict=("ticket_id", "user_id"))

    async def count_unread(
        self,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> int:
        rows: List[Dict[str, Any]] = await self._store.select(
            self._involving(viewer_id, limit).select(
                "id", "last_comment_author_id", "last_activity_at", "created_at",
            )
        )
        excluded = set(exclude_ids)
        window = [row for row in rows if str(row["id"]) not in excluded]
        reads = await self._last_reads(viewer_id, [str(row["id"]) for row in window])
        return sum(
            1 for row in window
            if has_unseen_activity(
                viewer_id,
                row.get("last_comment_author_id"),
                parse_timestamp(row.get("last_activity_at")) or parse_timestamp(row.get("created_at")),
                reads.get(str(row["id"])),
            )
        )

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]:
        return [
            TableSubscription(TICKETS_TABLE),
            TableSubscription(COMMENTS_TABLE, events=("INSERT",)),
            TableSubscription(READS_TABLE, match={"user_id": viewer_id}),
        ]
