"""Merge, sort and count. Pure functions, no I/O."""

from typing import Dict, Iterable, List

from unified_inbox.domain.models import SourceType, UnifiedItem, UnreadCounts


def sort_key(item: UnifiedItem):
    # Newest first; ties broken by id ascending.
    return (-item.timestamp.timestamp(), item.id)


def merge_items(batches: Iterable[List[UnifiedItem]]) -> List[UnifiedItem]:
    """Concatenate per-source batches into one totally ordered list."""
    merged: List[UnifiedItem] = []
    for batch in batches:
        merged.extend(batch)
    merged.sort(key=sort_key)
    return merged


def count_unread(items: Iterable[UnifiedItem]) -> UnreadCounts:
    per_source: Dict[SourceType, int] = {source: 0 for source in SourceType}
    for item in items:
        if item.is_unread:
            per_source[item.source_type] += 1
    return UnreadCounts(per_source)
