"""
Google Sheets Remote Store

DESIGN DECISION: Google Sheets is used as the remote backend because:
1. Parents can see the synced document directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- One cell holds the whole ledger document, so documents are capped at the
  Sheets cell limit
- No transactions: upserts are last-write-wins
- Lookups scan the id column (fine for a handful of identities)

gspread is blocking, so every sheet call (and every tenacity back-off
between retries) runs in a worker thread, never on the event loop.

Layout: one worksheet, header row, then one row per identity:
    id | data_json | updated_at
"""

import asyncio
from datetime import datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from goldengoose.config import GoogleSheetsSettings, get_settings
from goldengoose.models.ledger import LedgerState
from goldengoose.services.storage.interface import (
    ConnectionError,
    RemoteRecord,
    RemoteStoreInterface,
    SnapshotTooLargeError,
    StorageError,
)


LEDGER_COLUMNS = [
    "id",
    "data_json",
    "updated_at",
]

# Google Sheets refuses cells longer than this
MAX_CELL_CHARS = 50000


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

    def get_ledger_sheet(self) -> gspread.Worksheet:
        """Get or create the ledger snapshot worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.ledger_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.ledger_sheet_name,
                rows=100,
                cols=len(LEDGER_COLUMNS),
            )
            sheet.append_row(LEDGER_COLUMNS)
        return sheet


class GoogleSheetsRemoteStore(RemoteStoreInterface):
    """
    Google Sheets implementation of the remote ledger store.

    The ledger document is JSON-serialized into a single cell.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _record_to_row(self, record: RemoteRecord) -> list:
        """Convert a RemoteRecord to a spreadsheet row."""
        data_json = record.data.model_dump_json()
        if len(data_json) > MAX_CELL_CHARS:
            raise SnapshotTooLargeError(
                f"Ledger document is {len(data_json)} characters; "
                f"a sheet cell holds at most {MAX_CELL_CHARS}"
            )
        return [
            record.id,
            data_json,
            record.updated_at.isoformat(),
        ]

    def _row_to_record(self, row: list) -> RemoteRecord:
        """Convert a spreadsheet row to a RemoteRecord."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return RemoteRecord(
            id=safe_get(0),
            data=LedgerState.model_validate_json(safe_get(1, "{}")),
            updated_at=datetime.fromisoformat(safe_get(2)),
        )

    @retry(
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _read_rows(self) -> list[list]:
        sheet = self._client.get_ledger_sheet()
        return sheet.get_all_values()

    async def fetch_by_key(self, identity_id: str) -> Optional[RemoteRecord]:
        """Fetch the ledger document stored for an identity."""
        try:
            all_rows = (await asyncio.to_thread(self._read_rows))[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to fetch ledger: {e}")

        for row in all_rows:
            if row and row[0] == identity_id:
                try:
                    return self._row_to_record(row)
                except (ValidationError, ValueError) as e:
                    raise StorageError(f"Stored ledger for {identity_id} is unreadable: {e}")

        return None

    @retry(
        retry=retry_if_exception_type(gspread.exceptions.APIError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_row(self, identity_id: str, row: list) -> None:
        sheet = self._client.get_ledger_sheet()
        all_rows = sheet.get_all_values()

        # Row 1 is the header
        for idx, existing in enumerate(all_rows[1:], start=2):
            if existing and existing[0] == identity_id:
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
                return

        sheet.append_row(row, value_input_option="RAW")

    async def upsert(
        self,
        identity_id: str,
        data: LedgerState,
        updated_at: datetime,
    ) -> bool:
        """Insert or replace the identity's row."""
        row = self._record_to_row(
            RemoteRecord(id=identity_id, data=data, updated_at=updated_at)
        )
        try:
            await asyncio.to_thread(self._write_row, identity_id, row)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save ledger: {e}")
