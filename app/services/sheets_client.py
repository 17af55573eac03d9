import logging
from typing import List, Optional, Sequence

from googleapiclient.discovery import build

from app.models.schemas import GoogleCredentials, SheetCount
from app.services.credentials import build_service_account_credentials

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ['https://www.googleapis.com/auth/spreadsheets.readonly']


def get_sheets_service(credentials: GoogleCredentials):
    """
    Get an authenticated Google Sheets service instance.
    """
    try:
        google_credentials = build_service_account_credentials(credentials, SHEETS_SCOPES)
        return build('sheets', 'v4', credentials=google_credentials, cache_discovery=False)
    except Exception as e:
        logger.error(f"Error creating Google Sheets service: {e}")
        raise


def _column_letter(index: int) -> str:
    """Convert a 0-based column index to A1 notation (0 -> A, 26 -> AA)."""
    letters = ""
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


class SheetsClient:
    """Read-only access to the recordings master index spreadsheet."""

    def __init__(self, spreadsheet_id: str, service=None, credentials: Optional[GoogleCredentials] = None):
        if not spreadsheet_id:
            raise ValueError("A spreadsheet ID is required")
        self.spreadsheet_id = spreadsheet_id
        self.service = service if service is not None else get_sheets_service(credentials)

    def _get_values(self, range_name: str) -> List[List[str]]:
        result = self.service.spreadsheets().values().get(
            spreadsheetId=self.spreadsheet_id,
            range=range_name
        ).execute()
        return result.get('values', [])

    def count_rows(self, tab: str) -> int:
        """Number of data rows in a tab, judged by column A with the header excluded."""
        values = self._get_values(f"'{tab}'!A:A")
        rows = max(0, len(values) - 1)
        logger.debug(f"{tab}: {rows} rows")
        return rows

    def count_tabs(self, tabs: Sequence[str]) -> List[SheetCount]:
        return [SheetCount(tab=tab, rows=self.count_rows(tab)) for tab in tabs]

    def column_values(self, tab: str, column: str) -> List[str]:
        """
        Return the non-blank values under the header named ``column``.

        Raises:
            ValueError: If the tab has no such header
        """
        header = self._get_values(f"'{tab}'!1:1")
        header = [h.strip() for h in header[0]] if header else []
        if column not in header:
            raise ValueError(f"Column '{column}' not found in tab '{tab}'")

        letter = _column_letter(header.index(column))
        values = self._get_values(f"'{tab}'!{letter}2:{letter}")
        return [row[0].strip() for row in values if row and row[0].strip()]
