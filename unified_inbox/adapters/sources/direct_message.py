"""Direct client conversations (mc_conversations)."""

from typing import Collection, List, Sequence

from unified_inbox.adapters.sources.base import NO_MESSAGES, BaseSourceAdapter
from unified_inbox.domain.models import SourceType, UnifiedItem
from unified_inbox.domain.records import DirectConversation
from unified_inbox.ports.outbound import TableSubscription
from unified_inbox.ports.query import Query

CONVERSATIONS_TABLE = "mc_conversations"
MESSAGES_TABLE = "mc_messages"
CONVERSATION_TYPES = ("client", "team_direct")


class DirectMessageAdapter(BaseSourceAdapter):
    """Read marker: the conversation's own unread counter."""

    source_type = SourceType.DIRECT_MESSAGE

    def _visible(self, viewer_id: str) -> Query:
        return (
            Query(CONVERSATIONS_TABLE)
            .eq("status", "active")
            .in_("conversation_type", CONVERSATION_TYPES)
            .contains("participant_ids", viewer_id)
            .order("last_message_at", descending=True, nulls_last=True)
        )

    async def fetch_recent(self, viewer_id: str, limit: int) -> List[DirectConversation]:
        rows = await self._store.select(self._visible(viewer_id).limit(limit))
        return [DirectConversation.from_row(row) for row in rows]

    def is_unread(self, record: DirectConversation, viewer_id: str) -> bool:
        return record.unread_count > 0

    def project(self, record: DirectConversation) -> UnifiedItem:
        return self._item(
            native_id=record.id,
            title=record.contact_name or record.title,
            preview=record.last_message_preview,
            timestamp=record.last_message_at or record.updated_at,
            action_type="conversation",
            action_id=record.id,
            raw=record,
            preview_fallback=NO_MESSAGES,
        )

    async def mark_read_bulk(self, native_ids: Sequence[str], viewer_id: str) -> None:
        if not native_ids:
            return
        query = (
            Query(CONVERSATIONS_TABLE)
            .in_("id", list(native_ids))
            .contains("participant_ids", viewer_id)
        )
        await self._store.update(query, {"unread_count": 0})

    async def count_unread(
        self,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> int:
        rows = await self._store.select(
            self._visible(viewer_id).select("id", "unread_count").limit(limit)
        )
        excluded = set(exclude_ids)
        return sum(
            1 for row in rows
            if str(row["id"]) not in excluded and int(row.get("unread_count") or 0) > 0
        )

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]:
        return [
            TableSubscription(CONVERSATIONS_TABLE),
            TableSubscription(MESSAGES_TABLE, events=("INSERT",)),
        ]
