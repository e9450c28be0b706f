"""Dismissal overlay — per-viewer hidden markers, independent of source data."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Set, Tuple

from unified_inbox.domain.models import DismissalMarker, SourceType
from unified_inbox.domain.records import parse_timestamp
from unified_inbox.ports.outbound import RecordStorePort, TableSubscription
from unified_inbox.ports.query import Query

logger = logging.getLogger(__name__)

DISMISSALS_TABLE = "inbox_dismissals"
CONFLICT_KEY = ("user_id", "source_type", "native_id")


class DismissalOverlay:
    """Durable until restored, unless a TTL is configured."""

    def __init__(
        self,
        store: RecordStorePort,
        ttl: Optional[timedelta] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _key(self, viewer_id: str, source_type: SourceType, native_id: str) -> dict:
        return {"user_id": viewer_id, "source_type": SourceType(source_type).value, "native_id": str(native_id)}

    def _is_expired(self, dismissed_at: Optional[datetime], now: datetime) -> bool:
        if self._ttl is None or dismissed_at is None:
            return False
        return dismissed_at + self._ttl <= now

    async def dismiss(self, viewer_id: str, source_type: SourceType, native_id: str) -> DismissalMarker:
        """Hide one native record for one viewer. Repeating it is a no-op."""
        now = self._clock()
        key = self._key(viewer_id, source_type, native_id)
        existing = await self._store.select(
            Query(DISMISSALS_TABLE)
            .eq("user_id", key["user_id"])
            .eq("source_type", key["source_type"])
            .eq("native_id", key["native_id"])
            .limit(1)
        )
        if existing:
            dismissed_at = parse_timestamp(existing[0].get("dismissed_at"))
            if not self._is_expired(dismissed_at, now):
                return DismissalMarker(viewer_id, SourceType(source_type), str(native_id), dismissed_at or now)

        await self._store.upsert(
            DISMISSALS_TABLE,
            [dict(key, dismissed_at=now.isoformat())],
            on_conflict=CONFLICT_KEY,
        )
        logger.debug("Dismissed %s/%s for %s", key["source_type"], native_id, viewer_id)
        return DismissalMarker(viewer_id, SourceType(source_type), str(native_id), now)

    async def restore(self, viewer_id: str, source_type: SourceType, native_id: str) -> bool:
        """Remove the marker. Returns False when nothing was dismissed."""
        removed = await self._store.delete(DISMISSALS_TABLE, self._key(viewer_id, source_type, native_id))
        return removed > 0

    async def markers(self, viewer_id: str) -> List[DismissalMarker]:
        now = self._clock()
        rows = await self._store.select(Query(DISMISSALS_TABLE).eq("user_id", viewer_id))
        result = []
        for row in rows:
            try:
                source_type = SourceType(row.get("source_type"))
            except ValueError:
                logger.warning("Ignoring dismissal with unknown source %r", row.get("source_type"))
                continue
            dismissed_at = parse_timestamp(row.get("dismissed_at"))
            if self._is_expired(dismissed_at, now):
                continue
            result.append(DismissalMarker(viewer_id, source_type, str(row.get("native_id")), dismissed_at or now))
        return result

    async def dismissed(self, viewer_id: str) -> Set[Tuple[SourceType, str]]:
        return {(m.source_type, m.native_id) for m in await self.markers(viewer_id)}

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete markers past the TTL. No-op without a TTL."""
        if self._ttl is None:
            return 0
        cutoff = (now or self._clock()) - self._ttl
        rows = await self._store.select(Query(DISMISSALS_TABLE).lt("dismissed_at", cutoff.isoformat()))
        purged = 0
        for row in rows:
            purged += await self._store.delete(
                DISMISSALS_TABLE, {col: row.get(col) for col in CONFLICT_KEY}
            )
        if purged:
            logger.info("Purged %d expired dismissal(s)", purged)
        return purged

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]:
        return [TableSubscription(DISMISSALS_TABLE, match={"user_id": viewer_id})]
