"""Native record shapes, one per source.

Each record is parsed from a store row (a plain dict). Missing optional
columns are tolerated so partially-populated rows still project.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or datetime) into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass
class DirectConversation:
    id: str
    conversation_type: str
    status: str
    title: Optional[str]
    contact_name: Optional[str]
    last_message_preview: Optional[str]
    last_message_at: Optional[datetime]
    updated_at: Optional[datetime]
    unread_count: int = 0
    participant_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DirectConversation":
        contact = row.get("contact") or {}
        contact_name = contact.get("display_name") if isinstance(contact, dict) else None
        return cls(
            id=str(row["id"]),
            conversation_type=row.get("conversation_type", "client"),
            status=row.get("status", "active"),
            title=row.get("title"),
            contact_name=contact_name or row.get("contact_name"),
            last_message_preview=row.get("last_message_preview"),
            last_message_at=parse_timestamp(row.get("last_message_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            unread_count=int(row.get("unread_count") or 0),
            participant_ids=[str(p) for p in row.get("participant_ids") or []],
        )


@dataclass
class TeamConversation:
    """A team conversation joined with the viewer's participant row.

    `unread_messages` counts non-deleted messages from other members newer
    than the participant's `last_read_at`; the adapter fills it in.
    """

    id: str
    title: Optional[str]
    last_message_preview: Optional[str]
    last_message_at: Optional[datetime]
    updated_at: Optional[datetime]
    last_read_at: Optional[datetime] = None
    unread_messages: int = 0

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        participant: Optional[Dict[str, Any]] = None,
        unread_messages: int = 0,
    ) -> "TeamConversation":
        participant = participant or {}
        return cls(
            id=str(row["id"]),
            title=row.get("title"),
            last_message_preview=row.get("last_message_preview"),
            last_message_at=parse_timestamp(row.get("last_message_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            last_read_at=parse_timestamp(participant.get("last_read_at")),
            unread_messages=unread_messages,
        )


@dataclass
class Announcement:
    id: str
    title: Optional[str]
    body: Optional[str]
    message_type: Optional[str]
    published_at: Optional[datetime]
    created_at: Optional[datetime]
    read_by: List[str] = field(default_factory=list)

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        read_by: Optional[List[str]] = None,
    ) -> "Announcement":
        return cls(
            id=str(row["id"]),
            title=row.get("title"),
            body=row.get("body"),
            message_type=row.get("message_type"),
            published_at=parse_timestamp(row.get("published_at")),
            created_at=parse_timestamp(row.get("created_at")),
            read_by=list(read_by or []),
        )


@dataclass
class SystemAlert:
    id: str
    user_id: str
    notification_type: Optional[str]
    title: Optional[str]
    body: Optional[str]
    is_read: bool
    created_at: Optional[datetime]
    quote_id: Optional[str] = None
    invoice_id: Optional[str] = None
    job_id: Optional[str] = None
    project_id: Optional[str] = None
    conversation_id: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SystemAlert":
        return cls(
            id=str(row["id"]),
            user_id=str(row.get("user_id", "")),
            notification_type=row.get("notification_type"),
            title=row.get("title"),
            body=row.get("body"),
            is_read=bool(row.get("is_read", False)),
            created_at=parse_timestamp(row.get("created_at")),
            quote_id=_str_or_none(row.get("quote_id")),
            invoice_id=_str_or_none(row.get("invoice_id")),
            job_id=_str_or_none(row.get("job_id")),
            project_id=_str_or_none(row.get("project_id")),
            conversation_id=_str_or_none(row.get("conversation_id")),
        )


@dataclass
class TicketThread:
    """A ticket joined with the viewer's last-read marker, if any."""

    id: str
    subject: Optional[str]
    description: Optional[str]
    status: Optional[str]
    submitter_id: Optional[str]
    assignee_id: Optional[str]
    watcher_ids: List[str]
    last_comment_author_id: Optional[str]
    last_comment_preview: Optional[str]
    last_activity_at: Optional[datetime]
    created_at: Optional[datetime]
    viewer_last_read_at: Optional[datetime] = None

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        viewer_last_read_at: Optional[datetime] = None,
    ) -> "TicketThread":
        return cls(
            id=str(row["id"]),
            subject=row.get("subject"),
            description=row.get("description"),
            status=row.get("status"),
            submitter_id=_str_or_none(row.get("submitter_id")),
            assignee_id=_str_or_none(row.get("assignee_id")),
            watcher_ids=[str(w) for w in row.get("watcher_ids") or []],
            last_comment_author_id=_str_or_none(row.get("last_comment_author_id")),
            last_comment_preview=row.get("last_comment_preview"),
            last_activity_at=parse_timestamp(row.get("last_activity_at")),
            created_at=parse_timestamp(row.get("created_at")),
            viewer_last_read_at=viewer_last_read_at,
        )
