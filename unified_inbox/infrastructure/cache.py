"""Snapshot cache for computed feeds and badge counts.

Entries are keyed by (viewer_id, filter) for feeds and by viewer_id for
counts. An entry is replaced wholesale on every recompute and is treated as
missing once it is older than the staleness window.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from unified_inbox.domain.models import FeedSnapshot, InboxFilter, UnreadCounts

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class _Entry(Generic[T]):
    value: T
    stored_at: float


class SnapshotCache:
    """In-memory, per-process cache with a fixed staleness window."""

    def __init__(self, stale_seconds: float = 15.0, clock: Callable[[], float] = time.monotonic):
        self._stale_seconds = stale_seconds
        self._clock = clock
        self._feeds: Dict[Tuple[str, InboxFilter], _Entry[FeedSnapshot]] = {}
        self._counts: Dict[str, _Entry[UnreadCounts]] = {}
        self._hits = 0
        self._misses = 0

    @property
    def stale_seconds(self) -> float:
        return self._stale_seconds

    def _fresh(self, store: Dict[Hashable, _Entry], key: Hashable) -> Optional[Any]:
        entry = store.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() - entry.stored_at >= self._stale_seconds:
            del store[key]
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def get_feed(self, viewer_id: str, filter: InboxFilter) -> Optional[FeedSnapshot]:
        return self._fresh(self._feeds, (viewer_id, InboxFilter(filter)))

    def put_feed(self, snapshot: FeedSnapshot) -> None:
        self._feeds[(snapshot.viewer_id, snapshot.filter)] = _Entry(snapshot, self._clock())

    def get_counts(self, viewer_id: str) -> Optional[UnreadCounts]:
        return self._fresh(self._counts, viewer_id)

    def put_counts(self, viewer_id: str, counts: UnreadCounts) -> None:
        self._counts[viewer_id] = _Entry(counts, self._clock())

    def invalidate_viewer(self, viewer_id: str) -> int:
        """Drop every feed and count entry for one viewer."""
        feed_keys = [key for key in self._feeds if key[0] == viewer_id]
        for key in feed_keys:
            del self._feeds[key]
        dropped = len(feed_keys)
        if self._counts.pop(viewer_id, None) is not None:
            dropped += 1
        if dropped:
            logger.debug("Invalidated %d cache entr(ies) for %s", dropped, viewer_id)
        return dropped

    def clear(self) -> int:
        cleared = len(self._feeds) + len(self._counts)
        self._feeds.clear()
        self._counts.clear()
        return cleared

    @property
    def stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        return {
            "size": len(self._feeds) + len(self._counts),
            "ttl_seconds": self._stale_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total else 0.0,
        }
