"""Outbound ports — interfaces for record stores, change feeds and sources."""

from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Collection,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)

from unified_inbox.domain.models import SourceType, UnifiedItem
from unified_inbox.ports.query import Query


@dataclass(frozen=True)
class ChangeEvent:
    """A realtime hint that rows in `table` changed."""

    table: str
    event_type: str  # "INSERT" | "UPDATE" | "DELETE"
    record: Dict[str, Any] = field(default_factory=dict)


ChangeCallback = Callable[[ChangeEvent], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class TableSubscription:
    """One table an adapter wants change events for.

    `match` narrows events to rows whose columns equal the given values,
    e.g. {"user_id": viewer_id}. Events without a record always match.
    """

    table: str
    events: Tuple[str, ...] = ("*",)
    match: Optional[Dict[str, Any]] = None


@runtime_checkable
class RecordStorePort(Protocol):
    """Interface for the per-source record stores."""

    async def select(self, query: Query) -> List[Dict[str, Any]]: ...

    async def count(self, query: Query) -> int: ...

    async def update(self, query: Query, values: Dict[str, Any]) -> int: ...

    async def upsert(
        self,
        table: str,
        rows: Sequence[Dict[str, Any]],
        on_conflict: Sequence[str],
    ) -> None: ...

    async def delete(self, table: str, match: Dict[str, Any]) -> int: ...


@runtime_checkable
class ChangeFeedPort(Protocol):
    """Interface for realtime change notification transports."""

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        events: Sequence[str] = ("*",),
        match: Optional[Dict[str, Any]] = None,
    ) -> Unsubscribe: ...


@runtime_checkable
class SourceAdapter(Protocol):
    """Everything source-specific about one activity stream."""

    source_type: SourceType

    async def fetch_recent(self, viewer_id: str, limit: int) -> List[Any]: ...

    def is_unread(self, record: Any, viewer_id: str) -> bool: ...

    def project(self, record: Any) -> UnifiedItem: ...

    async def mark_read(self, native_id: str, viewer_id: str) -> None: ...

    async def mark_read_bulk(self, native_ids: Sequence[str], viewer_id: str) -> None: ...

    async def count_unread(
        self,
        viewer_id: str,
        limit: int,
        exclude_ids: Collection[str] = (),
    ) -> int: ...

    def watched_tables(self, viewer_id: str) -> List[TableSubscription]: ...
