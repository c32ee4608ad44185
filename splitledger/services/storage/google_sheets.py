"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets can hold group snapshots because:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- A cell holds at most 50,000 characters, so very large groups cannot
  be stored this way (save fails loudly, the ledger keeps working)
- No transactions (one row per key, updated in place)

Each snapshot is one row of the Snapshots worksheet:

    key | updated_at | snapshot_json
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from splitledger.config import GoogleSheetsSettings, get_settings
from splitledger.services.storage.interface import (
    ConnectionError,
    SnapshotStorageInterface,
    StorageError,
)


# Column mappings for Snapshots sheet
SNAPSHOT_COLUMNS = [
    "key",
    "updated_at",
    "snapshot_json",
]

# Google Sheets rejects cells longer than this
CELL_CHARACTER_LIMIT = 50_000


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

    def get_snapshots_sheet(self) -> gspread.Worksheet:
        """Get or create the Snapshots worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.snapshots_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.snapshots_sheet_name,
                rows=100,
                cols=len(SNAPSHOT_COLUMNS),
            )
            sheet.append_row(SNAPSHOT_COLUMNS)
        return sheet


class GoogleSheetsSnapshotStorage(SnapshotStorageInterface):
    """
    Google Sheets implementation of snapshot storage.

    Snapshots are stored as JSON text, one row per key.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(rows: list[list[str]], key: str) -> Optional[int]:
        """1-based sheet row index of the key, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == key:
                return idx
        return None

    def load(self, key: str) -> Optional[dict[str, Any]]:
        """Load the snapshot stored under a key."""
        try:
            sheet = self._client.get_snapshots_sheet()
            rows = sheet.get_all_values()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read snapshots: {e}")

        idx = self._find_row(rows, key)
        if idx is None:
            return None

        row = rows[idx - 1]
        raw = row[2] if len(row) > 2 else ""
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored snapshot for {key} is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Stored snapshot for {key} is not an object")
        return data

    def save(self, key: str, snapshot: dict[str, Any]) -> bool:
        """Insert or replace the snapshot row for a key."""
        try:
            payload = json.dumps(snapshot, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Snapshot is not JSON-serializable: {e}")

        if len(payload) > CELL_CHARACTER_LIMIT:
            raise StorageError(
                f"Snapshot for {key} is {len(payload)} characters, "
                f"above the {CELL_CHARACTER_LIMIT} character cell limit"
            )

        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            self._write_row(key, updated_at, payload)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save snapshot: {e}")
        return True

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_row(self, key: str, updated_at: str, payload: str) -> None:
        sheet = self._client.get_snapshots_sheet()
        idx = self._find_row(sheet.get_all_values(), key)
        if idx is None:
            sheet.append_row([key, updated_at, payload], value_input_option="RAW")
        else:
            sheet.update_cell(idx, 2, updated_at)
            sheet.update_cell(idx, 3, payload)
