"""Tests for routing mark-read intents to the owning source."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import EXPECTED_ORDER, VIEWER
from unified_inbox.aggregator import Aggregator
from unified_inbox.dismissal import DismissalOverlay
from unified_inbox.domain.models import SourceType, UnifiedItem, make_item_id
from unified_inbox.read_state import ReadStateDispatcher


def _item(source, native_id, unread=True):
    return UnifiedItem(
        id=make_item_id(source, native_id),
        source_type=source,
        native_id=native_id,
        title="t",
        preview="p",
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        is_unread=unread,
        action_type="x",
        action_id=native_id,
    )


def _mock_adapter(source):
    adapter = MagicMock()
    adapter.source_type = source
    adapter.mark_read = AsyncMock()
    adapter.mark_read_bulk = AsyncMock()
    return adapter


@pytest.fixture
def mocks():
    return {source: _mock_adapter(source) for source in SourceType}


class TestMarkOne:
    @pytest.mark.asyncio
    async def test_routes_to_owner(self, mocks):
        dispatcher = ReadStateDispatcher(mocks.values())
        assert await dispatcher.mark_one(_item(SourceType.ANNOUNCEMENT, "a1"), VIEWER) is True
        mocks[SourceType.ANNOUNCEMENT].mark_read.assert_awaited_once_with("a1", VIEWER)
        mocks[SourceType.DIRECT_MESSAGE].mark_read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_team_chat_is_a_no_op(self, mocks):
        dispatcher = ReadStateDispatcher(mocks.values())
        assert await dispatcher.mark_one(_item(SourceType.TEAM_CHAT, "t1"), VIEWER) is True
        mocks[SourceType.TEAM_CHAT].mark_read.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unregistered_source(self, mocks):
        dispatcher = ReadStateDispatcher([mocks[SourceType.DIRECT_MESSAGE]])
        assert await dispatcher.mark_one(_item(SourceType.TICKET_THREAD, "k1"), VIEWER) is False

    @pytest.mark.asyncio
    async def test_unknown_source_value(self, mocks):
        dispatcher = ReadStateDispatcher(mocks.values())
        item = MagicMock(source_type="carrier_pigeon", native_id="1")
        assert await dispatcher.mark_one(item, VIEWER) is False

    @pytest.mark.asyncio
    async def test_adapter_error_propagates(self, mocks):
        mocks[SourceType.SYSTEM_ALERT].mark_read.side_effect = RuntimeError("write failed")
        dispatcher = ReadStateDispatcher(mocks.values())
        with pytest.raises(RuntimeError):
            await dispatcher.mark_one(_item(SourceType.SYSTEM_ALERT, "n1"), VIEWER)


class TestMarkAllVisible:
    @pytest.mark.asyncio
    async def test_one_bulk_write_per_source(self, mocks):
        items = [
            _item(SourceType.DIRECT_MESSAGE, "c1"),
            _item(SourceType.ANNOUNCEMENT, "a1"),
            _item(SourceType.DIRECT_MESSAGE, "c2"),
            _item(SourceType.TICKET_THREAD, "k1"),
            _item(SourceType.ANNOUNCEMENT, "a2"),
        ]
        result = await ReadStateDispatcher(mocks.values()).mark_all_visible(items, VIEWER)

        total_calls = sum(m.mark_read_bulk.await_count for m in mocks.values())
        assert total_calls == 3
        mocks[SourceType.DIRECT_MESSAGE].mark_read_bulk.assert_awaited_once_with(["c1", "c2"], VIEWER)
        mocks[SourceType.ANNOUNCEMENT].mark_read_bulk.assert_awaited_once_with(["a1", "a2"], VIEWER)
        mocks[SourceType.TICKET_THREAD].mark_read_bulk.assert_awaited_once_with(["k1"], VIEWER)
        assert result.ok is True
        assert result.succeeded == [SourceType.DIRECT_MESSAGE, SourceType.ANNOUNCEMENT, SourceType.TICKET_THREAD]

    @pytest.mark.asyncio
    async def test_read_items_and_duplicates_skipped(self, mocks):
        items = [
            _item(SourceType.SYSTEM_ALERT, "n1"),
            _item(SourceType.SYSTEM_ALERT, "n1"),
            _item(SourceType.SYSTEM_ALERT, "n2", unread=False),
            _item(SourceType.DIRECT_MESSAGE, "c9", unread=False),
        ]
        await ReadStateDispatcher(mocks.values()).mark_all_visible(items, VIEWER)
        mocks[SourceType.SYSTEM_ALERT].mark_read_bulk.assert_awaited_once_with(["n1"], VIEWER)
        mocks[SourceType.DIRECT_MESSAGE].mark_read_bulk.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_partial_failure_reported(self, mocks):
        mocks[SourceType.ANNOUNCEMENT].mark_read_bulk.side_effect = RuntimeError("reads table locked")
        items = [_item(SourceType.DIRECT_MESSAGE, "c1"), _item(SourceType.ANNOUNCEMENT, "a1")]
        result = await ReadStateDispatcher(mocks.values()).mark_all_visible(items, VIEWER)
        assert result.ok is False
        assert result.succeeded == [SourceType.DIRECT_MESSAGE]
        assert result.failed == {SourceType.ANNOUNCEMENT: "reads table locked"}

    @pytest.mark.asyncio
    async def test_nothing_unread(self, mocks):
        result = await ReadStateDispatcher(mocks.values()).mark_all_visible([], VIEWER)
        assert result.ok is True
        assert result.succeeded == []


@pytest.mark.asyncio
async def test_bulk_mark_read_clears_feed(adapters, store, clock):
    aggregator = Aggregator(adapters, DismissalOverlay(store, clock=clock), clock=clock)
    before = await aggregator.compute(VIEWER)
    unread = [i for i in before.items if i.is_unread]
    subset = [i for i in unread if i.source_type is not SourceType.SYSTEM_ALERT]

    result = await ReadStateDispatcher(adapters).mark_all_visible(subset, VIEWER)
    assert result.ok is True

    after = {i.id: i.is_unread for i in (await aggregator.compute(VIEWER)).items}
    assert list(after) == EXPECTED_ORDER
    for item in subset:
        assert after[item.id] is False
    # Not in the input set, so untouched
    assert after["notif-n1"] is True
    assert sum(after.values()) == 1
