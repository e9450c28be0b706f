"""Domain layer — pure Python, no framework dependencies."""

from unified_inbox.domain.models import (
    FILTER_SOURCES,
    ActionTarget,
    DismissalMarker,
    FeedSnapshot,
    InboxFilter,
    MarkReadResult,
    SourceType,
    UnifiedItem,
    UnreadCounts,
    make_item_id,
    parse_item_id,
    truncate_preview,
)
from unified_inbox.domain.feed import count_unread, merge_items, sort_key

__all__ = [
    "FILTER_SOURCES",
    "ActionTarget",
    "DismissalMarker",
    "FeedSnapshot",
    "InboxFilter",
    "MarkReadResult",
    "SourceType",
    "UnifiedItem",
    "UnreadCounts",
    "make_item_id",
    "parse_item_id",
    "truncate_preview",
    "count_unread",
    "merge_items",
    "sort_key",
]
