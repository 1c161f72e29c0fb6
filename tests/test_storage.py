"""Tests for the local and remote stores."""

import asyncio
import json
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from goldengoose.models.ledger import LedgerState
from goldengoose.services.storage import (
    FileLocalStore,
    GoogleSheetsRemoteStore,
    InMemoryLocalStore,
    InMemoryRemoteStore,
    SnapshotTooLargeError,
    StorageError,
)
from goldengoose.services.storage.google_sheets import LEDGER_COLUMNS, MAX_CELL_CHARS


UPDATED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestFileLocalStore:
    """Tests for the file-per-key local store."""

    def test_round_trip(self, tmp_path):
        """Test write then read."""
        store = FileLocalStore(tmp_path)
        store.write("ledger_v1", b'{"a": 1}')
        assert store.read("ledger_v1") == b'{"a": 1}'

    def test_missing_key_reads_none(self, tmp_path):
        """Test reading a key that was never written."""
        assert FileLocalStore(tmp_path).read("nothing") is None

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that atomic writes clean up after themselves."""
        store = FileLocalStore(tmp_path, fsync_after_write=False)
        store.write("k", b"one")
        store.write("k", b"two")

        assert store.read("k") == b"two"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]

    def test_creates_data_dir(self, tmp_path):
        """Test that the directory is created on first write."""
        store = FileLocalStore(tmp_path / "nested" / "dir")
        store.write("k", b"x")
        assert (tmp_path / "nested" / "dir" / "k.json").exists()

    def test_delete(self, tmp_path):
        """Test deleting present and missing keys."""
        store = FileLocalStore(tmp_path)
        store.write("k", b"x")
        assert store.delete("k") is True
        assert store.delete("k") is False
        assert store.read("k") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", "sp ace"])
    def test_unsafe_key_rejected(self, tmp_path, key):
        """Test that keys cannot leave the data directory."""
        with pytest.raises(StorageError):
            FileLocalStore(tmp_path).write(key, b"x")


class TestInMemoryLocalStore:
    """Tests for the dict-backed local store."""

    def test_round_trip_and_delete(self):
        """Test basic operations."""
        store = InMemoryLocalStore()
        store.write("k", b"v")
        assert store.read("k") == b"v"
        assert store.delete("k") is True
        assert store.read("k") is None


class TestInMemoryRemoteStore:
    """Tests for the in-memory remote store."""

    @pytest.mark.asyncio
    async def test_absent_identity(self):
        """Test that a new identity has no record."""
        assert await InMemoryRemoteStore().fetch_by_key("nobody") is None

    @pytest.mark.asyncio
    async def test_upsert_then_fetch(self, default_state):
        """Test last-write-wins upsert."""
        store = InMemoryRemoteStore()
        await store.upsert("u1", LedgerState(), UPDATED_AT)
        await store.upsert("u1", default_state, UPDATED_AT)

        record = await store.fetch_by_key("u1")
        assert record.data == default_state
        assert record.updated_at == UPDATED_AT
        assert store.upsert_count == 2


@pytest.fixture
def sheet():
    sheet = MagicMock()
    sheet.get_all_values.return_value = [list(LEDGER_COLUMNS)]
    return sheet


@pytest.fixture
def sheets_store(sheet):
    client = MagicMock()
    client.get_ledger_sheet.return_value = sheet
    return GoogleSheetsRemoteStore(client)


class TestGoogleSheetsRemoteStore:
    """Tests for the Google Sheets remote store (mocked gspread)."""

    @pytest.mark.asyncio
    async def test_fetch_existing_row(self, sheets_store, sheet, default_state):
        """Test reading a stored ledger."""
        sheet.get_all_values.return_value = [
            list(LEDGER_COLUMNS),
            ["other", LedgerState().model_dump_json(), UPDATED_AT.isoformat()],
            ["u1", default_state.model_dump_json(), UPDATED_AT.isoformat()],
        ]
        record = await sheets_store.fetch_by_key("u1")

        assert record.id == "u1"
        assert record.data == default_state
        assert record.updated_at == UPDATED_AT

    @pytest.mark.asyncio
    async def test_fetch_absent_row(self, sheets_store):
        """Test that absence is a normal outcome."""
        assert await sheets_store.fetch_by_key("u1") is None

    @pytest.mark.asyncio
    async def test_fetch_unreadable_row(self, sheets_store, sheet):
        """Test that a corrupt cell is reported, not treated as absent."""
        sheet.get_all_values.return_value = [
            list(LEDGER_COLUMNS),
            ["u1", "{not json", UPDATED_AT.isoformat()],
        ]
        with pytest.raises(StorageError):
            await sheets_store.fetch_by_key("u1")

    @pytest.mark.asyncio
    async def test_fetch_failure(self, sheets_store, sheet):
        """Test that API failures become StorageError."""
        sheet.get_all_values.side_effect = RuntimeError("quota exceeded")
        with pytest.raises(StorageError):
            await sheets_store.fetch_by_key("u1")

    @pytest.mark.asyncio
    async def test_upsert_appends_new_identity(self, sheets_store, sheet, default_state):
        """Test inserting a row for a new identity."""
        assert await sheets_store.upsert("u1", default_state, UPDATED_AT) is True

        sheet.append_row.assert_called_once()
        row = sheet.append_row.call_args.args[0]
        assert row[0] == "u1"
        assert json.loads(row[1])["active_account_id"] == default_state.active_account_id
        assert row[2] == UPDATED_AT.isoformat()
        sheet.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_replaces_existing_row(self, sheets_store, sheet, default_state):
        """Test updating the identity's row in place."""
        sheet.get_all_values.return_value = [
            list(LEDGER_COLUMNS),
            ["other", "{}", UPDATED_AT.isoformat()],
            ["u1", "{}", UPDATED_AT.isoformat()],
        ]
        await sheets_store.upsert("u1", default_state, UPDATED_AT)

        sheet.update.assert_called_once()
        assert sheet.update.call_args.kwargs["range_name"] == "A3:C3"
        sheet.append_row.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_rejects_oversized_document(self, sheets_store, sheet, default_state):
        """Test the single-cell size limit."""
        state = default_state.with_account(default_state.active_account.model_copy(update={
            "recovery_question": "q" * (MAX_CELL_CHARS + 1),
        }))
        with pytest.raises(SnapshotTooLargeError):
            await sheets_store.upsert("u1", state, UPDATED_AT)
        sheet.append_row.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_failure(self, sheets_store, sheet, default_state):
        """Test that write failures become StorageError."""
        sheet.append_row.side_effect = RuntimeError("network down")
        with pytest.raises(StorageError):
            await sheets_store.upsert("u1", default_state, UPDATED_AT)

    @pytest.mark.asyncio
    async def test_slow_sheet_does_not_block_event_loop(self, sheets_store, sheet, default_state):
        """Test that other coroutines keep running while the sheet is slow."""
        def slow_read():
            time.sleep(0.5)
            return [list(LEDGER_COLUMNS)]

        sheet.get_all_values.side_effect = slow_read
        ticks = 0

        async def heartbeat():
            nonlocal ticks
            while True:
                ticks += 1
                await asyncio.sleep(0.02)

        beat = asyncio.create_task(heartbeat())
        await sheets_store.upsert("u1", default_state, UPDATED_AT)
        assert await sheets_store.fetch_by_key("u1") is None
        beat.cancel()

        assert ticks >= 10
        sheet.append_row.assert_called_once()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
