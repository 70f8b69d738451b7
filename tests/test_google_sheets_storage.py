"""Tests for the Google Sheets key/value storage (no real API calls)."""

import pytest
from unittest.mock import MagicMock

from conftest import FakeWorksheet
from fuel_tracker.services.storage import GoogleSheetsKeyValueStorage, StorageError


@pytest.fixture
def sheet() -> FakeWorksheet:
    return FakeWorksheet()


@pytest.fixture
def sheets_storage(sheet) -> GoogleSheetsKeyValueStorage:
    client = MagicMock()
    client.get_state_sheet.return_value = sheet
    return GoogleSheetsKeyValueStorage(client)


class TestGoogleSheetsKeyValueStorage:
    """Tests for the row-per-key layout."""

    @pytest.mark.asyncio
    async def test_set_appends_then_overwrites(self, sheets_storage, sheet):
        """Test a key keeps a single row."""
        await sheets_storage.set("@fuel-tracker/app-store", '{"version": 1}')
        await sheets_storage.set("@fuel-tracker/app-store", '{"version": 1, "state": {}}')

        assert len(sheet.rows) == 2
        assert await sheets_storage.get("@fuel-tracker/app-store") == '{"version": 1, "state": {}}'

    @pytest.mark.asyncio
    async def test_missing_key(self, sheets_storage):
        """Test unknown keys read as None."""
        assert await sheets_storage.get("missing") is None

    @pytest.mark.asyncio
    async def test_remove(self, sheets_storage, sheet):
        """Test remove deletes only the matching row."""
        await sheets_storage.set("a", "1")
        await sheets_storage.set("b", "2")
        await sheets_storage.remove("a")
        await sheets_storage.remove("missing")

        assert [row[0] for row in sheet.rows] == ["key", "b"]

    @pytest.mark.asyncio
    async def test_remove_failure_is_storage_error(self):
        """Test backend errors surface as StorageError."""
        client = MagicMock()
        client.get_state_sheet.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(StorageError):
            await GoogleSheetsKeyValueStorage(client).remove("a")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
