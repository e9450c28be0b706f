"""Unified Inbox: one ordered activity feed over several message sources."""

from unified_inbox.config import CONFIG, AppConfig, __version__
from unified_inbox.domain.models import (
    FeedSnapshot,
    InboxFilter,
    MarkReadResult,
    SourceType,
    UnifiedItem,
    UnreadCounts,
)
from unified_inbox.errors import InboxError, StoreError, UnknownSourceError
from unified_inbox.service import InboxService

__all__ = [
    "CONFIG",
    "AppConfig",
    "__version__",
    "FeedSnapshot",
    "InboxFilter",
    "MarkReadResult",
    "SourceType",
    "UnifiedItem",
    "UnreadCounts",
    "InboxError",
    "StoreError",
    "UnknownSourceError",
    "InboxService",
]
