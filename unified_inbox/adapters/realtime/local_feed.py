"""In-process change feed — implements ChangeFeedPort.

Stores that live in the same process publish here after each write. Delivery
is synchronous and best-effort: a failing callback is logged and skipped so
one subscriber cannot block the others.
"""

import itertools
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from unified_inbox.adapters.storage.row_filter import matches_values
from unified_inbox.ports.outbound import ChangeCallback, ChangeEvent, Unsubscribe

logger = logging.getLogger(__name__)


class LocalChangeFeed:
    def __init__(self):
        self._ids = itertools.count(1)
        # sub_id -> (table, events, match, callback)
        self._subscribers: Dict[int, Tuple[str, Tuple[str, ...], Optional[Dict[str, Any]], ChangeCallback]] = {}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        events: Sequence[str] = ("*",),
        match: Optional[Dict[str, Any]] = None,
    ) -> Unsubscribe:
        sub_id = next(self._ids)
        self._subscribers[sub_id] = (table, tuple(events), match, callback)

        def unsubscribe() -> None:
            self._subscribers.pop(sub_id, None)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to matching subscribers. Returns delivery count."""
        delivered = 0
        for table, events, match, callback in list(self._subscribers.values()):
            if table != event.table:
                continue
            if "*" not in events and event.event_type not in events:
                continue
            if match and event.record and not matches_values(event.record, match):
                continue
            try:
                callback(event)
                delivered += 1
            except Exception:
                logger.exception("Change callback failed for table %s", event.table)
        return delivered
