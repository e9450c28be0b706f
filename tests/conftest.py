"""Shared fixtures: a fixed clock and a seeded in-memory store for viewer V."""

import tempfile
from datetime import datetime, timedelta, timezone

import pytest

from unified_inbox.adapters.realtime import LocalChangeFeed
from unified_inbox.adapters.sources import default_adapters
from unified_inbox.adapters.storage import MemoryRecordStore

VIEWER = "V"
NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def ago(**kwargs) -> str:
    return (NOW - timedelta(**kwargs)).isoformat()


def seed_tables():
    """One unread item per source for V, plus read and foreign rows.

    Expected `all` feed order for V (newest first):
        ticket-k1, notif-n1, sms-c1, team-t1, announcement-a1, notif-n2, sms-c2, ticket-k2
    """
    return {
        "mc_conversations": [
            {
                "id": "c1", "status": "active", "conversation_type": "client",
                "participant_ids": [VIEWER, "X"], "contact": {"display_name": "Ada Lovelace"},
                "last_message_preview": "Can you come Tuesday?", "last_message_at": ago(hours=1),
                "unread_count": 2,
            },
            {
                "id": "c2", "status": "active", "conversation_type": "team_direct",
                "participant_ids": [VIEWER, "Y"], "title": "Yusuf",
                "last_message_preview": None, "last_message_at": ago(hours=5),
                "unread_count": 0,
            },
            {
                "id": "c3", "status": "active", "conversation_type": "client",
                "participant_ids": ["X"], "last_message_at": ago(minutes=1), "unread_count": 4,
            },
            {
                "id": "c4", "status": "archived", "conversation_type": "client",
                "participant_ids": [VIEWER], "last_message_at": ago(minutes=2), "unread_count": 1,
            },
        ],
        "conversations": [
            {"id": "t1", "title": "Crew", "last_message_preview": "Van is loaded", "last_message_at": ago(hours=2)},
            {"id": "t2", "title": "Old crew", "last_message_at": ago(minutes=3)},
        ],
        "conversation_participants": [
            {"conversation_id": "t1", "user_id": VIEWER, "last_read_at": ago(days=1), "is_archived": False},
            {"conversation_id": "t2", "user_id": VIEWER, "last_read_at": ago(days=1), "is_archived": True},
        ],
        "direct_messages": [
            {"id": "dm1", "conversation_id": "t1", "sender_id": "W", "content": "Van is loaded",
             "is_deleted": False, "created_at": ago(hours=2)},
            {"id": "dm2", "conversation_id": "t1", "sender_id": VIEWER, "content": "Thanks",
             "is_deleted": False, "created_at": ago(hours=3)},
            {"id": "dm3", "conversation_id": "t2", "sender_id": "W", "content": "Old news",
             "is_deleted": False, "created_at": ago(minutes=3)},
        ],
        "company_messages": [
            {"id": "a1", "title": "Holiday hours", "body": "Closed Friday.", "status": "published",
             "published_at": ago(hours=3)},
            {"id": "a2", "title": "Draft", "body": "Not yet.", "status": "draft", "published_at": None},
        ],
        "company_message_reads": [],
        "mc_system_notifications": [
            {"id": "n1", "user_id": VIEWER, "notification_type": "job_completed", "title": "Job done",
             "body": "Job #9 completed", "is_read": False, "job_id": "j9", "created_at": ago(minutes=30)},
            {"id": "n2", "user_id": VIEWER, "notification_type": "invoice_paid", "title": "Paid",
             "body": "Invoice settled", "is_read": True, "invoice_id": "i4", "created_at": ago(hours=4)},
            {"id": "n3", "user_id": "X", "notification_type": "quote_viewed", "title": "Not yours",
             "is_read": False, "created_at": ago(minutes=5)},
        ],
        "tickets": [
            {"id": "k1", "subject": "Leaking tap", "submitter_id": VIEWER, "assignee_id": "W",
             "watcher_ids": [], "last_comment_author_id": "W", "last_comment_preview": "On my way",
             "last_activity_at": ago(minutes=10), "created_at": ago(days=1)},
            {"id": "k2", "subject": "Gate code", "submitter_id": "W", "assignee_id": VIEWER,
             "watcher_ids": [], "last_comment_author_id": VIEWER, "last_comment_preview": "Done",
             "last_activity_at": ago(hours=6), "created_at": ago(days=2)},
            {"id": "k3", "subject": "Someone else's", "submitter_id": "W", "assignee_id": "Z",
             "watcher_ids": ["Q"], "last_comment_author_id": "W", "last_activity_at": ago(minutes=1)},
        ],
        "ticket_reads": [],
        "inbox_dismissals": [],
    }


EXPECTED_ORDER = [
    "ticket-k1", "notif-n1", "sms-c1", "team-t1",
    "announcement-a1", "notif-n2", "sms-c2", "ticket-k2",
]


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def change_feed():
    return LocalChangeFeed()


@pytest.fixture
def store(change_feed):
    return MemoryRecordStore(seed_tables(), change_feed=change_feed)


@pytest.fixture
def adapters(store, clock):
    return default_adapters(store, clock=clock)


@pytest.fixture
def tmp_dir():
    with tempfile.TemporaryDirectory() as d:
        yield d
