"""Inbox service, the surface the application talks to.

Reads go through the snapshot cache; writes go to the owning source (or the
dismissal overlay) and then invalidate the viewer's cached entries.
"""

import logging
from datetime import timedelta
from typing import Callable, Dict, Iterable, Optional, Tuple, Union

from unified_inbox.adapters.sources import default_adapters
from unified_inbox.aggregator import DEFAULT_LIMIT, Aggregator
from unified_inbox.bridge import ChangeNotificationBridge
from unified_inbox.config import AppConfig
from unified_inbox.dismissal import DismissalOverlay
from unified_inbox.domain.models import (
    FeedSnapshot,
    InboxFilter,
    MarkReadResult,
    SourceType,
    UnifiedItem,
    UnreadCounts,
    parse_item_id,
)
from unified_inbox.infrastructure.cache import SnapshotCache
from unified_inbox.read_state import ReadStateDispatcher

logger = logging.getLogger(__name__)

ItemRef = Union[UnifiedItem, str]


def _resolve(item: ItemRef) -> Tuple[SourceType, str]:
    if isinstance(item, UnifiedItem):
        return item.source_type, item.native_id
    return parse_item_id(item)


class InboxService:
    def __init__(
        self,
        aggregator: Aggregator,
        dispatcher: ReadStateDispatcher,
        overlay: DismissalOverlay,
        cache: SnapshotCache,
        bridge_factory: Optional[Callable[[], ChangeNotificationBridge]] = None,
        limit: int = DEFAULT_LIMIT,
    ):
        self.aggregator = aggregator
        self.dispatcher = dispatcher
        self.overlay = overlay
        self.cache = cache
        self.limit = limit
        self._bridge_factory = bridge_factory
        self._sessions: Dict[str, ChangeNotificationBridge] = {}

    @classmethod
    def from_config(cls, config: AppConfig, store, change_feed=None, clock=None) -> "InboxService":
        """Default wiring: all five adapters over one record store."""
        adapters = default_adapters(store, preview_chars=config.feed.preview_chars, clock=clock)
        ttl = timedelta(days=config.dismissal_ttl_days) if config.dismissal_ttl_days else None
        overlay = DismissalOverlay(store, ttl=ttl, clock=clock)
        cache = SnapshotCache(stale_seconds=config.cache.stale_seconds)
        bridge_factory = None
        if change_feed is not None:
            def bridge_factory() -> ChangeNotificationBridge:
                return ChangeNotificationBridge(
                    change_feed,
                    cache,
                    adapters,
                    overlay=overlay,
                    refresh_interval_seconds=config.cache.refresh_interval_seconds,
                )
        return cls(
            aggregator=Aggregator(
                adapters, overlay, timeout_seconds=config.feed.adapter_timeout_seconds, clock=clock,
            ),
            dispatcher=ReadStateDispatcher(adapters),
            overlay=overlay,
            cache=cache,
            bridge_factory=bridge_factory,
            limit=config.feed.limit,
        )

    async def get_feed(self, viewer_id: str, filter: Union[InboxFilter, str] = InboxFilter.ALL) -> FeedSnapshot:
        filter = InboxFilter(filter)
        cached = self.cache.get_feed(viewer_id, filter)
        if cached is not None:
            return cached
        snapshot = await self.aggregator.compute(viewer_id, filter, limit=self.limit)
        self.cache.put_feed(snapshot)
        return snapshot

    async def get_unread_counts(self, viewer_id: str) -> UnreadCounts:
        cached = self.cache.get_counts(viewer_id)
        if cached is not None:
            return cached
        counts = await self.aggregator.count_unread(viewer_id, limit=self.limit)
        self.cache.put_counts(viewer_id, counts)
        return counts

    async def find_item(self, viewer_id: str, item_id: str) -> Optional[UnifiedItem]:
        """Look an item up in the viewer's current `all` feed."""
        snapshot = await self.get_feed(viewer_id, InboxFilter.ALL)
        return next((item for item in snapshot.items if item.id == item_id), None)

    async def dismiss(self, item: ItemRef, viewer_id: str) -> None:
        source_type, native_id = _resolve(item)
        try:
            await self.overlay.dismiss(viewer_id, source_type, native_id)
        finally:
            self.cache.invalidate_viewer(viewer_id)

    async def restore(self, item: ItemRef, viewer_id: str) -> bool:
        source_type, native_id = _resolve(item)
        try:
            return await self.overlay.restore(viewer_id, source_type, native_id)
        finally:
            self.cache.invalidate_viewer(viewer_id)

    async def mark_read(self, item: UnifiedItem, viewer_id: str) -> bool:
        try:
            return await self.dispatcher.mark_one(item, viewer_id)
        finally:
            self.cache.invalidate_viewer(viewer_id)

    async def mark_all_read(self, items: Iterable[UnifiedItem], viewer_id: str) -> MarkReadResult:
        result = await self.dispatcher.mark_all_visible(items, viewer_id)
        self.cache.invalidate_viewer(viewer_id)
        if not result.ok:
            logger.warning(
                "mark_all_read for %s partially failed: %s",
                viewer_id, ", ".join(s.value for s in result.failed),
            )
        return result

    # ── Realtime sessions ───────────────────────────────────

    @property
    def active_sessions(self) -> Tuple[str, ...]:
        return tuple(self._sessions)

    async def open_session(self, viewer_id: str, fallback_refresh: bool = True) -> bool:
        """Start change subscriptions for a viewer. False if realtime is not wired."""
        if self._bridge_factory is None:
            return False
        if viewer_id not in self._sessions:
            bridge = self._bridge_factory()
            bridge.start(viewer_id)
            if fallback_refresh:
                bridge.start_fallback_refresh()
            self._sessions[viewer_id] = bridge
        return True

    async def close_session(self, viewer_id: str) -> bool:
        bridge = self._sessions.pop(viewer_id, None)
        if bridge is None:
            return False
        await bridge.aclose()
        return True

    async def close_all_sessions(self) -> int:
        viewers = list(self._sessions)
        for viewer_id in viewers:
            await self.close_session(viewer_id)
        return len(viewers)
