"""Tests for native record parsing."""

from datetime import datetime, timezone

from unified_inbox.domain.records import (
    Announcement,
    DirectConversation,
    SystemAlert,
    TeamConversation,
    TicketThread,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2026-01-01T10:00:00Z") == datetime(2026, 1, 1, 10, tzinfo=timezone.utc)

    def test_offset_normalised_to_utc(self):
        parsed = parse_timestamp("2026-01-01T12:00:00+02:00")
        assert parsed == datetime(2026, 1, 1, 10, tzinfo=timezone.utc)
        assert parsed.tzinfo == timezone.utc

    def test_naive_assumed_utc(self):
        assert parse_timestamp(datetime(2026, 1, 1)) == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_missing_or_garbage(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None
        assert parse_timestamp("yesterday") is None


class TestDirectConversation:
    def test_contact_name_from_join(self):
        record = DirectConversation.from_row({
            "id": 5, "contact": {"display_name": "Ada"}, "unread_count": "3",
            "participant_ids": [1, 2],
        })
        assert record.id == "5"
        assert record.contact_name == "Ada"
        assert record.unread_count == 3
        assert record.participant_ids == ["1", "2"]

    def test_flat_contact_name(self):
        record = DirectConversation.from_row({"id": "c", "contact_name": "Bo", "unread_count": None})
        assert record.contact_name == "Bo"
        assert record.unread_count == 0


def test_team_conversation_reads_participant_row():
    record = TeamConversation.from_row(
        {"id": "t1", "title": "Crew"},
        {"last_read_at": "2026-01-01T00:00:00Z"},
        unread_messages=2,
    )
    assert record.unread_messages == 2
    assert record.last_read_at == datetime(2026, 1, 1, tzinfo=timezone.utc)
    bare = TeamConversation.from_row({"id": "t2"})
    assert bare.unread_messages == 0
    assert bare.last_read_at is None


def test_announcement_read_by():
    record = Announcement.from_row({"id": "a1", "published_at": "2026-01-01T00:00:00Z"}, read_by=["V"])
    assert record.read_by == ["V"]
    assert Announcement.from_row({"id": "a2"}).read_by == []


def test_system_alert_linked_ids():
    record = SystemAlert.from_row({"id": 1, "user_id": "V", "job_id": 77, "is_read": 0})
    assert record.job_id == "77"
    assert record.quote_id is None
    assert record.is_read is False


def test_ticket_thread_defaults():
    record = TicketThread.from_row({"id": "k", "watcher_ids": None, "last_comment_author_id": 9})
    assert record.watcher_ids == []
    assert record.last_comment_author_id == "9"
    assert record.viewer_last_read_at is None
