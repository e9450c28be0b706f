"""Aggregator — fans out to source adapters and merges one feed.

A failing or slow adapter contributes nothing to the result; it never fails
the whole computation. The aggregator keeps no state between calls.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Collection, Dict, Iterable, List, Optional, Set, Tuple, Union

from unified_inbox.dismissal import DismissalOverlay
from unified_inbox.domain.feed import count_unread, merge_items
from unified_inbox.domain.models import (
    FILTER_SOURCES,
    FeedSnapshot,
    InboxFilter,
    SourceType,
    UnifiedItem,
    UnreadCounts,
)
from unified_inbox.ports.outbound import SourceAdapter

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50

Dismissed = Set[Tuple[SourceType, str]]


class Aggregator:
    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        overlay: DismissalOverlay,
        timeout_seconds: float = 5.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._adapters: Dict[SourceType, SourceAdapter] = {}
        for adapter in adapters:
            self._adapters[adapter.source_type] = adapter
        self._overlay = overlay
        self._timeout = timeout_seconds
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def adapters(self) -> Dict[SourceType, SourceAdapter]:
        return dict(self._adapters)

    def adapters_for(self, filter: Union[InboxFilter, str]) -> List[SourceAdapter]:
        """Adapters enabled by a filter, in SourceType order."""
        sources = FILTER_SOURCES[InboxFilter(filter)]
        return [self._adapters[s] for s in SourceType if s in sources and s in self._adapters]

    async def _dismissed(self, viewer_id: str) -> Dismissed:
        try:
            return await self._overlay.dismissed(viewer_id)
        except Exception as e:
            logger.warning("Dismissal lookup failed for %s, showing everything: %s", viewer_id, e)
            return set()

    async def _fetch(self, adapter: SourceAdapter, viewer_id: str, limit: int) -> list:
        try:
            records = await asyncio.wait_for(adapter.fetch_recent(viewer_id, limit), timeout=self._timeout)
            return list(records or [])
        except asyncio.TimeoutError:
            logger.warning("Source %s timed out after %.1fs", adapter.source_type.value, self._timeout)
        except Exception as e:
            logger.warning("Source %s unavailable: %s", adapter.source_type.value, e)
        return []

    def _project(
        self,
        adapter: SourceAdapter,
        records: list,
        viewer_id: str,
        dismissed: Dismissed,
    ) -> List[UnifiedItem]:
        items = []
        seen = set()
        for record in records:
            try:
                item = adapter.project(record)
                if (item.source_type, item.native_id) in dismissed or item.id in seen:
                    continue
                unread = bool(adapter.is_unread(record, viewer_id))
            except Exception:
                logger.exception("Failed to project %s record", adapter.source_type.value)
                continue
            seen.add(item.id)
            items.append(_with_unread(item, unread))
        return items

    async def compute(
        self,
        viewer_id: str,
        filter: Union[InboxFilter, str] = InboxFilter.ALL,
        limit: int = DEFAULT_LIMIT,
    ) -> FeedSnapshot:
        """Build a FeedSnapshot for (viewer_id, filter)."""
        filter = InboxFilter(filter)
        enabled = self.adapters_for(filter)

        dismissed, *batches = await asyncio.gather(
            self._dismissed(viewer_id),
            *(self._fetch(adapter, viewer_id, limit) for adapter in enabled),
        )

        projected = [
            self._project(adapter, records, viewer_id, dismissed)
            for adapter, records in zip(enabled, batches)
        ]
        items = merge_items(projected)
        return FeedSnapshot(
            viewer_id=viewer_id,
            filter=filter,
            items=items,
            counts=count_unread(items),
            computed_at=self._clock(),
        )

    async def _count(
        self,
        adapter: SourceAdapter,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str],
    ) -> int:
        try:
            return int(await asyncio.wait_for(
                adapter.count_unread(viewer_id, limit, exclude_ids), timeout=self._timeout,
            ))
        except asyncio.TimeoutError:
            logger.warning("Unread count for %s timed out after %.1fs", adapter.source_type.value, self._timeout)
        except Exception as e:
            logger.warning("Unread count for %s unavailable: %s", adapter.source_type.value, e)
        return 0

    async def count_unread(self, viewer_id: str, limit: int = DEFAULT_LIMIT) -> UnreadCounts:
        """Badge counts only: narrow per-source queries, no projection.

        Uses the same recency window and dismissal rules as `compute`, so
        the result matches the `all` feed's counts.
        """
        dismissed = await self._dismissed(viewer_id)
        enabled = self.adapters_for(InboxFilter.ALL)
        counts = await asyncio.gather(*(
            self._count(
                adapter,
                viewer_id,
                limit,
                {native_id for source, native_id in dismissed if source == adapter.source_type},
            )
            for adapter in enabled
        ))
        per_source = {source: 0 for source in SourceType}
        for adapter, count in zip(enabled, counts):
            per_source[adapter.source_type] = count
        return UnreadCounts(per_source)


def _with_unread(item: UnifiedItem, unread: bool) -> UnifiedItem:
    if item.is_unread == unread:
        return item
    return replace(item, is_unread=unread)
