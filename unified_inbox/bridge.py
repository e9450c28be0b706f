"""Change-notification bridge: realtime events invalidate cached snapshots.

Delivery is treated as a hint. A periodic fallback refresh bounds staleness
when events are delayed or dropped.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Iterable, List, Optional

from unified_inbox.dismissal import DismissalOverlay
from unified_inbox.infrastructure.cache import SnapshotCache
from unified_inbox.ports.outbound import (
    ChangeEvent,
    ChangeFeedPort,
    SourceAdapter,
    TableSubscription,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class ChangeNotificationBridge:
    """Holds the subscriptions for one active viewer at a time."""

    def __init__(
        self,
        change_feed: ChangeFeedPort,
        cache: SnapshotCache,
        adapters: Iterable[SourceAdapter],
        overlay: Optional[DismissalOverlay] = None,
        refresh_interval_seconds: float = 30.0,
    ):
        self._change_feed = change_feed
        self._cache = cache
        self._adapters = list(adapters)
        self._overlay = overlay
        self._refresh_interval = refresh_interval_seconds
        self._viewer_id: Optional[str] = None
        self._unsubscribers: List[Unsubscribe] = []
        self._refresh_task: Optional[asyncio.Task] = None
        self.invalidations = 0

    @property
    def viewer_id(self) -> Optional[str]:
        return self._viewer_id

    @property
    def is_active(self) -> bool:
        return self._viewer_id is not None

    def subscriptions_for(self, viewer_id: str) -> List[TableSubscription]:
        subscriptions: List[TableSubscription] = []
        for adapter in self._adapters:
            subscriptions.extend(adapter.watched_tables(viewer_id))
        if self._overlay is not None:
            subscriptions.extend(self._overlay.watched_tables(viewer_id))
        return subscriptions

    def _on_change(self, event: ChangeEvent) -> None:
        viewer_id = self._viewer_id
        if viewer_id is None:
            return
        self.invalidations += 1
        self._cache.invalidate_viewer(viewer_id)
        logger.debug("Change on %s (%s), invalidated %s", event.table, event.event_type, viewer_id)

    def start(self, viewer_id: str) -> None:
        """Subscribe for a viewer, replacing any previous viewer's session."""
        if self._viewer_id == viewer_id:
            return
        if self._viewer_id is not None:
            self._unsubscribe_all()
        self._viewer_id = viewer_id
        for sub in self.subscriptions_for(viewer_id):
            self._unsubscribers.append(
                self._change_feed.subscribe(sub.table, self._on_change, events=sub.events, match=sub.match)
            )
        logger.info("Bridge started for %s (%d subscriptions)", viewer_id, len(self._unsubscribers))

    def _unsubscribe_all(self) -> None:
        for unsubscribe in self._unsubscribers:
            try:
                unsubscribe()
            except Exception:
                logger.exception("Unsubscribe failed")
        self._unsubscribers = []
        if self._viewer_id is not None:
            logger.info("Bridge stopped for %s", self._viewer_id)

    def stop(self) -> Optional[asyncio.Task]:
        """Tear down every subscription and cancel the fallback refresh.

        Returns the cancelled refresh task, if one was running, so an async
        caller can wait for it to finish.
        """
        self._unsubscribe_all()
        task, self._refresh_task = self._refresh_task, None
        if task is not None:
            task.cancel()
        self._viewer_id = None
        return task

    async def aclose(self) -> None:
        """Stop, then wait for the cancelled fallback refresh to unwind."""
        task = self.stop()
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Fallback refresh failed")

    async def run_fallback_refresh(self) -> None:
        """Invalidate the active viewer on a fixed interval until cancelled."""
        while True:
            await asyncio.sleep(self._refresh_interval)
            if self._viewer_id is not None:
                self.invalidations += 1
                self._cache.invalidate_viewer(self._viewer_id)

    def start_fallback_refresh(self) -> asyncio.Task:
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self.run_fallback_refresh())
        return self._refresh_task

    @asynccontextmanager
    async def session(self, viewer_id: str, fallback_refresh: bool = True):
        """Scope subscriptions (and the fallback refresh) to a block."""
        self.start(viewer_id)
        if fallback_refresh:
            self.start_fallback_refresh()
        try:
            yield self
        finally:
            await self.aclose()
