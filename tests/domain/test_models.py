"""Tests for the unified item model, item ids and counts."""

from datetime import datetime, timezone

import pytest

from unified_inbox.domain.models import (
    FILTER_SOURCES,
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
from unified_inbox.errors import UnknownSourceError


def _item(**overrides):
    data = dict(
        id="sms-1",
        source_type=SourceType.DIRECT_MESSAGE,
        native_id="1",
        title="Ada",
        preview="hello",
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        is_unread=True,
        action_type="conversation",
        action_id="1",
    )
    data.update(overrides)
    return UnifiedItem(**data)


class TestItemIds:
    @pytest.mark.parametrize("source,prefix", [
        (SourceType.DIRECT_MESSAGE, "sms"),
        (SourceType.TEAM_CHAT, "team"),
        (SourceType.ANNOUNCEMENT, "announcement"),
        (SourceType.SYSTEM_ALERT, "notif"),
        (SourceType.TICKET_THREAD, "ticket"),
    ])
    def test_prefix_per_source(self, source, prefix):
        assert make_item_id(source, "42") == f"{prefix}-42"

    def test_same_native_id_differs_across_sources(self):
        assert make_item_id(SourceType.DIRECT_MESSAGE, "7") != make_item_id(SourceType.TEAM_CHAT, "7")

    def test_parse_keeps_dashes_in_native_id(self):
        source, native = parse_item_id("ticket-3f2a-44c1")
        assert source is SourceType.TICKET_THREAD
        assert native == "3f2a-44c1"

    @pytest.mark.parametrize("bad", ["", "sms", "sms-", "email-1", "nodash"])
    def test_parse_rejects_unknown(self, bad):
        with pytest.raises(UnknownSourceError):
            parse_item_id(bad)

    def test_unknown_source_is_value_error(self):
        with pytest.raises(ValueError):
            parse_item_id("fax-1")


class TestTruncatePreview:
    def test_short_text_untouched(self):
        assert truncate_preview("hello") == "hello"

    def test_exact_limit_untouched(self):
        text = "a" * 80
        assert truncate_preview(text) == text

    def test_over_limit_marked(self):
        result = truncate_preview("a" * 100)
        assert result == "a" * 80 + "..."

    def test_custom_limit(self):
        assert truncate_preview("abcdef", limit=3) == "abc..."

    def test_empty(self):
        assert truncate_preview(None) == ""
        assert truncate_preview("") == ""


class TestFilters:
    def test_all_covers_every_source(self):
        assert FILTER_SOURCES[InboxFilter.ALL] == frozenset(SourceType)

    def test_team_spans_chat_and_announcements(self):
        assert FILTER_SOURCES[InboxFilter.TEAM] == {SourceType.TEAM_CHAT, SourceType.ANNOUNCEMENT}

    def test_unknown_filter_rejected(self):
        with pytest.raises(ValueError):
            InboxFilter("spam")


class TestUnifiedItem:
    def test_action_target(self):
        item = _item(action_type="job", action_id="j9")
        assert item.action.type == "job"
        assert item.action.id == "j9"

    def test_raw_ignored_for_equality(self):
        assert _item(raw={"a": 1}) == _item(raw={"b": 2})

    def test_to_dict(self):
        data = _item().to_dict()
        assert data["id"] == "sms-1"
        assert data["source_type"] == "direct_message"
        assert data["timestamp"] == "2026-01-01T00:00:00+00:00"
        assert "raw" not in data


class TestUnreadCounts:
    def test_total_is_sum(self):
        counts = UnreadCounts({SourceType.DIRECT_MESSAGE: 2, SourceType.ANNOUNCEMENT: 1})
        assert counts.total == 3
        assert counts.get(SourceType.TICKET_THREAD) == 0

    def test_empty(self):
        counts = UnreadCounts.empty()
        assert counts.total == 0
        assert set(counts.per_source) == set(SourceType)

    def test_to_dict_lists_every_source(self):
        data = UnreadCounts({SourceType.SYSTEM_ALERT: 4}).to_dict()
        assert data["system_alert"] == 4
        assert data["team_chat"] == 0
        assert data["total"] == 4


class TestSnapshotAndResult:
    def test_snapshot_to_dict(self):
        snapshot = FeedSnapshot(
            viewer_id="V",
            filter=InboxFilter.TEAM,
            items=[_item()],
            counts=UnreadCounts({SourceType.DIRECT_MESSAGE: 1}),
            computed_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
        )
        data = snapshot.to_dict()
        assert data["filter"] == "team"
        assert [i["id"] for i in data["items"]] == ["sms-1"]
        assert data["counts"]["total"] == 1

    def test_mark_read_result(self):
        result = MarkReadResult()
        assert result.ok is True
        result.succeeded.append(SourceType.ANNOUNCEMENT)
        result.failed[SourceType.TICKET_THREAD] = "boom"
        assert result.ok is False
        assert result.to_dict() == {
            "ok": False,
            "succeeded": ["announcement"],
            "failed": {"ticket_thread": "boom"},
        }
