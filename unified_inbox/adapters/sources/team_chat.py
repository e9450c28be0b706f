"""Internal team chats (conversations + conversation_participants).

Read state is the `last_read_at` marker on the viewer's participant row: a
chat is unread while another member has posted a non-deleted message after
it. The conversation view normally advances the marker, so single-item
dispatch skips this source; bulk mark-all still goes through `mark_read_bulk`.
"""

import asyncio
from datetime import datetime
from typing import Any, Collection, Dict, List, Optional, Sequence

from unified_inbox.adapters.sources.base import NO_MESSAGES, BaseSourceAdapter
from unified_inbox.domain.models import SourceType, UnifiedItem
from unified_inbox.domain.records import EPOCH, TeamConversation, parse_timestamp
from unified_inbox.ports.outbound import TableSubscription
from unified_inbox.ports.query import Query

CONVERSATIONS_TABLE = "conversations"
PARTICIPANTS_TABLE = "conversation_participants"
MESSAGES_TABLE = "direct_messages"


def unread_messages_query(conversation_id: str, viewer_id: str, last_read_at: Optional[datetime]) -> Query:
    return (
        Query(MESSAGES_TABLE)
        .eq("conversation_id", conversation_id)
        .neq("sender_id", viewer_id)
        .neq("is_deleted", True)
        .gt("created_at", last_read_at or EPOCH)
    )


class TeamChatAdapter(BaseSourceAdapter):
    source_type = SourceType.TEAM_CHAT

    async def _participations(self, viewer_id: str) -> Dict[str, Dict[str, Any]]:
        query = (
            Query(PARTICIPANTS_TABLE)
            .eq("user_id", viewer_id)
            .neq("is_archived", True)
            .select("conversation_id", "last_read_at")
        )
        rows = await self._store.select(query)
        return {str(row["conversation_id"]): row for row in rows}

    def _window(self, conversation_ids: List[str], limit: int) -> Query:
        return (
            Query(CONVERSATIONS_TABLE)
            .in_("id", conversation_ids)
            .order("last_message_at", descending=True, nulls_last=True)
            .limit(limit)
        )

    async def _unread_messages(
        self,
        conversation_ids: Sequence[str],
        participations: Dict[str, Dict[str, Any]],
        viewer_id: str,
    ) -> List[int]:
        return list(await asyncio.gather(*(
            self._store.count(unread_messages_query(
                conversation_id,
                viewer_id,
                parse_timestamp(participations[conversation_id].get("last_read_at")),
            ))
            for conversation_id in conversation_ids
        )))

    async def fetch_recent(self, viewer_id: str, limit: int) -> List[TeamConversation]:
        participations = await self._participations(viewer_id)
        if not participations:
            return []
        rows = await self._store.select(self._window(list(participations), limit))
        ids = [str(row["id"]) for row in rows]
        unread = await self._unread_messages(ids, participations, viewer_id)
        return [
            TeamConversation.from_row(row, participations[conversation_id], unread_messages=n)
            for row, conversation_id, n in zip(rows, ids, unread)
        ]

    def is_unread(self, record: TeamConversation, viewer_id: str) -> bool:
        return record.unread_messages > 0

    def project(self, record: TeamConversation) -> UnifiedItem:
        return self._item(
            native_id=record.id,
            title=record.title,
            preview=record.last_message_preview,
            timestamp=record.last_message_at or record.updated_at,
            action_type="team_conversation",
            action_id=record.id,
            raw=record,
            title_fallback="Team chat",
            preview_fallback=NO_MESSAGES,
        )

    async def mark_read_bulk(self, native_ids: Sequence[str], viewer_id: str) -> None:
        if not native_ids:
            return
        now = self._now_iso()
        rows = [
            {"conversation_id": native_id, "user_id": viewer_id, "last_read_at": now}
            for native_id in native_ids
        ]
        await self._store.upsert(PARTICIPANTS_TABLE, rows, on_conflict=("conversation_id", "user_id"))

    async def count_unread(
        self,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> int:
        participations = await self._participations(viewer_id)
        if not participations:
            return 0
        window = await self._store.select(self._window(list(participations), limit).select("id"))
        excluded = set(exclude_ids)
        ids = [str(row["id"]) for row in window if str(row["id"]) not in excluded]
        unread = await self._unread_messages(ids, participations, viewer_id)
        return sum(1 for n in unread if n > 0)

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]:
        return [
            TableSubscription(CONVERSATIONS_TABLE),
            TableSubscription(PARTICIPANTS_TABLE, match={"user_id": viewer_id}),
            TableSubscription(MESSAGES_TABLE, events=("INSERT",)),
        ]
