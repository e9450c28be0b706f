"""Port interfaces (Hexagonal Architecture)."""

from unified_inbox.ports.outbound import (
    ChangeEvent,
    ChangeFeedPort,
    RecordStorePort,
    SourceAdapter,
    TableSubscription,
)
from unified_inbox.ports.query import Condition, Query, cond

__all__ = [
    "ChangeEvent",
    "ChangeFeedPort",
    "RecordStorePort",
    "SourceAdapter",
    "TableSubscription",
    "Condition",
    "Query",
    "cond",
]
