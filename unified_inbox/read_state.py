"""Read-state dispatcher: routes mark-read intents to the owning source."""

import asyncio
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from unified_inbox.domain.models import MarkReadResult, SourceType, UnifiedItem
from unified_inbox.ports.outbound import SourceAdapter

logger = logging.getLogger(__name__)

# Team chat read state is kept by the conversation view itself.
SINGLE_MARK_SKIPPED = frozenset({SourceType.TEAM_CHAT})


class ReadStateDispatcher:
    def __init__(self, adapters: Iterable[SourceAdapter]):
        self._adapters: Dict[SourceType, SourceAdapter] = {a.source_type: a for a in adapters}

    def _adapter_for(self, source_type) -> Optional[SourceAdapter]:
        try:
            source = SourceType(source_type)
        except ValueError:
            logger.warning("Unknown source type %r, cannot dispatch read state", source_type)
            return None
        adapter = self._adapters.get(source)
        if adapter is None:
            logger.warning("No adapter registered for %s, cannot dispatch read state", source.value)
        return adapter

    async def mark_one(self, item: UnifiedItem, viewer_id: str) -> bool:
        """Mark a single item read. Returns False if it could not be routed."""
        adapter = self._adapter_for(item.source_type)
        if adapter is None:
            return False
        if adapter.source_type in SINGLE_MARK_SKIPPED:
            return True
        await adapter.mark_read(item.native_id, viewer_id)
        return True

    async def mark_all_visible(self, items: Iterable[UnifiedItem], viewer_id: str) -> MarkReadResult:
        """One bulk write per source present among the unread items.

        Groups are written concurrently and independently; a failed group is
        reported in the result and does not undo the others.
        """
        groups: "OrderedDict[SourceType, List[str]]" = OrderedDict()
        result = MarkReadResult()
        for item in items:
            if not item.is_unread:
                continue
            adapter = self._adapter_for(item.source_type)
            if adapter is None:
                continue
            ids = groups.setdefault(adapter.source_type, [])
            if item.native_id not in ids:
                ids.append(item.native_id)

        sources = list(groups)
        outcomes = await asyncio.gather(
            *(self._adapters[s].mark_read_bulk(groups[s], viewer_id) for s in sources),
            return_exceptions=True,
        )
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("Bulk mark-read failed for %s: %s", source.value, outcome)
                result.failed[source] = str(outcome) or type(outcome).__name__
            else:
                result.succeeded.append(source)
        return result
