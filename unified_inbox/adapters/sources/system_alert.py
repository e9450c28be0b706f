"""System-generated alerts (mc_system_notifications)."""

from typing import Collection, List, Sequence

from unified_inbox.adapters.sources.base import BaseSourceAdapter
from unified_inbox.domain.models import SourceType, UnifiedItem
from unified_inbox.domain.records import SystemAlert
from unified_inbox.ports.outbound import TableSubscription
from unified_inbox.ports.query import Query

ALERTS_TABLE = "mc_system_notifications"

# notification_type -> deep-link action type
ACTION_TYPES = {
    "quote_viewed": "quote",
    "quote_signed": "quote",
    "quote_expired": "quote",
    "invoice_paid": "invoice",
    "invoice_overdue": "invoice",
    "invoice_partial": "invoice",
    "job_status_change": "job",
    "job_scheduled": "job",
    "job_completed": "job",
    "booking_request": "request",
    "message_received": "conversation",
}


def action_type_for(notification_type) -> str:
    return ACTION_TYPES.get(notification_type or "", "generic")


def action_id_for(alert: SystemAlert) -> str:
    """First linked entity id, falling back to the alert itself."""
    for linked in (alert.quote_id, alert.invoice_id, alert.job_id, alert.project_id, alert.conversation_id):
        if linked:
            return linked
    return alert.id


class SystemAlertAdapter(BaseSourceAdapter):
    """Read marker: the alert's is_read flag, addressed to one viewer."""

    source_type = SourceType.SYSTEM_ALERT

    def _addressed_to(self, viewer_id: str) -> Query:
        return (
            Query(ALERTS_TABLE)
            .eq("user_id", viewer_id)
            .neq("is_dismissed", True)
            .order("created_at", descending=True, nulls_last=True)
        )

    async def fetch_recent(self, viewer_id: str, limit: int) -> List[SystemAlert]:
        rows = await self._store.select(self._addressed_to(viewer_id).limit(limit))
        return [SystemAlert.from_row(row) for row in rows]

    def is_unread(self, record: SystemAlert, viewer_id: str) -> bool:
        return not record.is_read

    def project(self, record: SystemAlert) -> UnifiedItem:
        return self._item(
            native_id=record.id,
            title=record.title,
            preview=record.body,
            timestamp=record.created_at,
            action_type=action_type_for(record.notification_type),
            action_id=action_id_for(record),
            raw=record,
            title_fallback="Notification",
        )

    async def mark_read_bulk(self, native_ids: Sequence[str], viewer_id: str) -> None:
        if not native_ids:
            return
        query = Query(ALERTS_TABLE).in_("id", list(native_ids)).eq("user_id", viewer_id)
        await self._store.update(query, {"is_read": True, "read_at": self._now_iso()})

    async def count_unread(
        self,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> int:
        rows = await self._store.select(
            self._addressed_to(viewer_id).select("id", "is_read").limit(limit)
        )
        excluded = set(exclude_ids)
        return sum(
            1 for row in rows
            if str(row["id"]) not in excluded and not row.get("is_read")
        )

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]:
        return [TableSubscription(ALERTS_TABLE, match={"user_id": viewer_id})]
