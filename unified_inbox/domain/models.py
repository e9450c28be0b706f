"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from unified_inbox.errors import UnknownSourceError


class SourceType(str, Enum):
    """Closed set of activity streams merged into the inbox."""

    DIRECT_MESSAGE = "direct_message"
    TEAM_CHAT = "team_chat"
    ANNOUNCEMENT = "announcement"
    SYSTEM_ALERT = "system_alert"
    TICKET_THREAD = "ticket_thread"


# Namespace prefix for UnifiedItem.id, per source
ID_PREFIXES: Dict[SourceType, str] = {
    SourceType.DIRECT_MESSAGE: "sms",
    SourceType.TEAM_CHAT: "team",
    SourceType.ANNOUNCEMENT: "announcement",
    SourceType.SYSTEM_ALERT: "notif",
    SourceType.TICKET_THREAD: "ticket",
}

_PREFIX_TO_SOURCE = {prefix: source for source, prefix in ID_PREFIXES.items()}


class InboxFilter(str, Enum):
    """Viewer-selected category. TEAM spans two sources."""

    ALL = "all"
    DIRECT_MESSAGE = "direct_message"
    TEAM = "team"
    TICKETS = "tickets"
    ALERTS = "alerts"


FILTER_SOURCES: Dict[InboxFilter, FrozenSet[SourceType]] = {
    InboxFilter.ALL: frozenset(SourceType),
    InboxFilter.DIRECT_MESSAGE: frozenset({SourceType.DIRECT_MESSAGE}),
    InboxFilter.TEAM: frozenset({SourceType.TEAM_CHAT, SourceType.ANNOUNCEMENT}),
    InboxFilter.TICKETS: frozenset({SourceType.TICKET_THREAD}),
    InboxFilter.ALERTS: frozenset({SourceType.SYSTEM_ALERT}),
}


def make_item_id(source_type: SourceType, native_id: str) -> str:
    return f"{ID_PREFIXES[source_type]}-{native_id}"


def parse_item_id(item_id: str) -> Tuple[SourceType, str]:
    """Split a namespaced item id back into (source_type, native_id)."""
    prefix, sep, native_id = item_id.partition("-")
    if not sep or not native_id or prefix not in _PREFIX_TO_SOURCE:
        raise UnknownSourceError(f"Unrecognised inbox item id: {item_id!r}")
    return _PREFIX_TO_SOURCE[prefix], native_id


def truncate_preview(text: Optional[str], limit: int = 80) -> str:
    """Cut text to `limit` characters, marking the cut with '...'."""
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


@dataclass(frozen=True)
class ActionTarget:
    """Deep-link target, e.g. ActionTarget("job", "<job-id>")."""

    type: str
    id: str


@dataclass(frozen=True)
class UnifiedItem:
    """One activity-stream entry regardless of source."""

    id: str
    source_type: SourceType
    native_id: str
    title: str
    preview: str
    timestamp: datetime
    is_unread: bool
    action_type: str
    action_id: str
    raw: Any = field(default=None, compare=False, repr=False)

    @property
    def action(self) -> ActionTarget:
        return ActionTarget(self.action_type, self.action_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source_type": self.source_type.value,
            "native_id": self.native_id,
            "title": self.title,
            "preview": self.preview,
            "timestamp": self.timestamp.isoformat(),
            "is_unread": self.is_unread,
            "action_type": self.action_type,
            "action_id": self.action_id,
        }


@dataclass(frozen=True)
class UnreadCounts:
    """Per-source unread counts. `total` is always their sum."""

    per_source: Mapping[SourceType, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.per_source.values())

    def get(self, source_type: SourceType) -> int:
        return self.per_source.get(source_type, 0)

    @classmethod
    def empty(cls) -> "UnreadCounts":
        return cls({source: 0 for source in SourceType})

    def to_dict(self) -> Dict[str, int]:
        data = {source.value: self.get(source) for source in SourceType}
        data["total"] = self.total
        return data


@dataclass(frozen=True)
class FeedSnapshot:
    """Result of one aggregation for (viewer_id, filter)."""

    viewer_id: str
    filter: InboxFilter
    items: List[UnifiedItem]
    counts: UnreadCounts
    computed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "viewer_id": self.viewer_id,
            "filter": self.filter.value,
            "items": [item.to_dict() for item in self.items],
            "counts": self.counts.to_dict(),
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class DismissalMarker:
    viewer_id: str
    source_type: SourceType
    native_id: str
    dismissed_at: datetime


@dataclass
class MarkReadResult:
    """Outcome of a bulk mark-read across sources."""

    succeeded: List[SourceType] = field(default_factory=list)
    failed: Dict[SourceType, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "succeeded": [source.value for source in self.succeeded],
            "failed": {source.value: error for source, error in self.failed.items()},
        }
