"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets can back the key/value store because:
1. Non-technical users can inspect their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- A single cell holds at most 50,000 characters. Snapshots are capped
  (50 notifications, 20 suggestions) so they stay well below that.
- No transactions. Each key lives in exactly one row and is overwritten
  in place, so a failed write leaves the previous value intact.

Layout: one worksheet with columns [key, value, updated_at].
"""

from datetime import datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from fuel_tracker.config import GoogleSheetsSettings, get_settings
from fuel_tracker.services.storage.interface import (
    ConnectionError,
    KeyValueStorage,
    StorageError,
)


STATE_COLUMNS = ["key", "value", "updated_at"]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_state_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.state_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.state_sheet_name,
                rows=100,
                cols=len(STATE_COLUMNS),
            )
            sheet.append_row(STATE_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStorage(KeyValueStorage):
    """
    Google Sheets implementation of key/value storage.

    One row per key. The first row is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row index of `key`, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def get(self, key: str) -> Optional[str]:
        try:
            rows = self._client.get_state_sheet().get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to read key {key}: {e}")

        idx = self._find_row(rows, key)
        if idx is None:
            return None
        row = rows[idx - 1]
        return row[1] if len(row) > 1 else None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def set(self, key: str, value: str) -> None:
        try:
            sheet = self._client.get_state_sheet()
            rows = sheet.get_all_values()
            new_row = [key, value, datetime.now().isoformat()]

            idx = self._find_row(rows, key)
            if idx is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[new_row],
                    value_input_option="RAW",
                )
        except Exception as e:
            raise StorageError(f"Failed to write key {key}: {e}")

    async def remove(self, key: str) -> None:
        try:
            sheet = self._client.get_state_sheet()
            idx = self._find_row(sheet.get_all_values(), key)
            if idx is not None:
                sheet.delete_rows(idx)
        except Exception as e:
            raise StorageError(f"Failed to remove key {key}: {e}")
