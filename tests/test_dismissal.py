"""Tests for the dismissal overlay."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from conftest import NOW, VIEWER
from unified_inbox.adapters.storage import JsonRecordStore, MemoryRecordStore
from unified_inbox.dismissal import DISMISSALS_TABLE, DismissalOverlay
from unified_inbox.domain.models import SourceType
from unified_inbox.errors import StoreError


class TestDismissRestore:
    @pytest.mark.asyncio
    async def test_dismiss_records_marker(self, clock):
        store = MemoryRecordStore()
        overlay = DismissalOverlay(store, clock=clock)
        marker = await overlay.dismiss(VIEWER, SourceType.TICKET_THREAD, "k1")
        assert marker.dismissed_at == NOW
        assert store.rows(DISMISSALS_TABLE) == [{
            "user_id": VIEWER,
            "source_type": "ticket_thread",
            "native_id": "k1",
            "dismissed_at": NOW.isoformat(),
        }]
        assert await overlay.dismissed(VIEWER) == {(SourceType.TICKET_THREAD, "k1")}

    @pytest.mark.asyncio
    async def test_double_dismiss_is_a_no_op(self, clock):
        store = MemoryRecordStore()
        store.upsert = AsyncMock(wraps=store.upsert)
        overlay = DismissalOverlay(store, clock=clock)
        first = await overlay.dismiss(VIEWER, SourceType.ANNOUNCEMENT, "a1")
        second = await overlay.dismiss(VIEWER, SourceType.ANNOUNCEMENT, "a1")
        assert first == second
        assert store.upsert.await_count == 1
        assert len(store.rows(DISMISSALS_TABLE)) == 1

    @pytest.mark.asyncio
    async def test_same_native_id_other_source_independent(self, clock):
        overlay = DismissalOverlay(MemoryRecordStore(), clock=clock)
        await overlay.dismiss(VIEWER, SourceType.DIRECT_MESSAGE, "7")
        assert await overlay.dismissed(VIEWER) == {(SourceType.DIRECT_MESSAGE, "7")}
        assert await overlay.restore(VIEWER, SourceType.TEAM_CHAT, "7") is False

    @pytest.mark.asyncio
    async def test_restore(self, clock):
        overlay = DismissalOverlay(MemoryRecordStore(), clock=clock)
        await overlay.dismiss(VIEWER, SourceType.SYSTEM_ALERT, "n1")
        assert await overlay.restore(VIEWER, SourceType.SYSTEM_ALERT, "n1") is True
        assert await overlay.restore(VIEWER, SourceType.SYSTEM_ALERT, "n1") is False
        assert await overlay.dismissed(VIEWER) == set()

    @pytest.mark.asyncio
    async def test_per_viewer(self, clock):
        overlay = DismissalOverlay(MemoryRecordStore(), clock=clock)
        await overlay.dismiss("W", SourceType.SYSTEM_ALERT, "n1")
        assert await overlay.dismissed(VIEWER) == set()

    @pytest.mark.asyncio
    async def test_unknown_source_rows_ignored(self, clock):
        store = MemoryRecordStore({DISMISSALS_TABLE: [
            {"user_id": VIEWER, "source_type": "fax", "native_id": "1", "dismissed_at": NOW.isoformat()},
        ]})
        assert await DismissalOverlay(store, clock=clock).markers(VIEWER) == []

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, clock, tmp_dir):
        store = JsonRecordStore(storage_dir=tmp_dir)
        (store.storage_dir / f"{DISMISSALS_TABLE}.json").write_text("not json")
        with pytest.raises(StoreError):
            await DismissalOverlay(store, clock=clock).dismiss(VIEWER, SourceType.SYSTEM_ALERT, "n1")

    @pytest.mark.asyncio
    async def test_survives_store_reload(self, clock, tmp_dir):
        await DismissalOverlay(JsonRecordStore(tmp_dir), clock=clock).dismiss(VIEWER, SourceType.SYSTEM_ALERT, "n1")
        reloaded = DismissalOverlay(JsonRecordStore(tmp_dir), clock=clock)
        assert await reloaded.dismissed(VIEWER) == {(SourceType.SYSTEM_ALERT, "n1")}


class TestTTL:
    @pytest.mark.asyncio
    async def test_durable_without_ttl(self):
        store = MemoryRecordStore()
        await DismissalOverlay(store, clock=lambda: NOW - timedelta(days=3650)).dismiss(
            VIEWER, SourceType.SYSTEM_ALERT, "n1",
        )
        overlay = DismissalOverlay(store, clock=lambda: NOW)
        assert await overlay.dismissed(VIEWER) == {(SourceType.SYSTEM_ALERT, "n1")}
        assert await overlay.purge_expired() == 0

    @pytest.mark.asyncio
    async def test_expired_markers_hidden_and_purged(self):
        store = MemoryRecordStore()
        old = DismissalOverlay(store, ttl=timedelta(days=30), clock=lambda: NOW - timedelta(days=31))
        await old.dismiss(VIEWER, SourceType.SYSTEM_ALERT, "old")
        fresh = DismissalOverlay(store, ttl=timedelta(days=30), clock=lambda: NOW)
        await fresh.dismiss(VIEWER, SourceType.SYSTEM_ALERT, "new")

        assert await fresh.dismissed(VIEWER) == {(SourceType.SYSTEM_ALERT, "new")}
        assert await fresh.purge_expired() == 1
        assert [r["native_id"] for r in store.rows(DISMISSALS_TABLE)] == ["new"]

    @pytest.mark.asyncio
    async def test_redismissing_expired_marker_refreshes_it(self):
        store = MemoryRecordStore()
        ttl = timedelta(days=1)
        await DismissalOverlay(store, ttl=ttl, clock=lambda: NOW - timedelta(days=2)).dismiss(
            VIEWER, SourceType.TICKET_THREAD, "k1",
        )
        overlay = DismissalOverlay(store, ttl=ttl, clock=lambda: NOW)
        marker = await overlay.dismiss(VIEWER, SourceType.TICKET_THREAD, "k1")
        assert marker.dismissed_at == NOW
        assert await overlay.dismissed(VIEWER) == {(SourceType.TICKET_THREAD, "k1")}
        assert len(store.rows(DISMISSALS_TABLE)) == 1


def test_watched_tables_scoped_to_viewer():
    [subscription] = DismissalOverlay(MemoryRecordStore()).watched_tables(VIEWER)
    assert subscription.table == DISMISSALS_TABLE
    assert subscription.match == {"user_id": VIEWER}
