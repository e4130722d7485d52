"""
Google Sheets Mirror

DESIGN DECISION: Google Sheets is the optional outward mirror because
non-technical users can look at their expenses there directly.

TRADEOFFS:
- An API key only grants read access to sheets shared publicly; appending
  needs a sheet that accepts anonymous edits or a service account
  (GOOGLE_SHEETS_CREDENTIALS_PATH)
- Every failure is logged and reported as a boolean or error list;
  nothing is retried
"""

from typing import Any, Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError

from expense_ledger.config import GoogleSheetsSettings, get_settings
from expense_ledger.ledger.csv_codec import CSV_HEADERS, parse_amount
from expense_ledger.models.expense import Expense, SheetsConfigStatus
from expense_ledger.services.sync.interface import MirrorGateway, SyncError


logger = structlog.get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


def validate_config(settings: Optional[GoogleSheetsSettings] = None) -> SheetsConfigStatus:
    """Check the required settings are present. Credentials are not verified."""
    settings = settings or get_settings().google_sheets
    missing = []

    if not settings.api_key and not settings.credentials_path:
        missing.append("GOOGLE_SHEETS_API_KEY")
    if not settings.spreadsheet_id:
        missing.append("GOOGLE_SHEETS_SPREADSHEET_ID")

    return SheetsConfigStatus(is_valid=not missing, missing_config=missing)


def setup_guide() -> dict[str, Any]:
    """Steps a user follows to prepare a spreadsheet for mirroring."""
    return {
        "steps": [
            "1. Go to Google Cloud Console (console.cloud.google.com)",
            "2. Create a new project or select an existing project",
            "3. Enable the Google Sheets API for your project",
            "4. Create an API key (or a service account) for the Sheets API",
            "5. Create a Google Sheets document",
            f"6. Add a worksheet with the headers: {', '.join(CSV_HEADERS)}",
            "7. Share the sheet with \"Anyone with the link can edit\" "
            "(or with the service account's email)",
            "8. Copy the spreadsheet ID from the URL",
            "9. Add the environment variables to your .env file",
        ],
        "requirements": [
            "Google Cloud Platform account",
            "Google Sheets API enabled",
            "API key or service account with Sheets API access",
            "Google Sheets document with proper headers",
        ],
        "example_env": (
            "# .env\n"
            "GOOGLE_SHEETS_API_KEY=your_api_key_here\n"
            "GOOGLE_SHEETS_SPREADSHEET_ID=your_spreadsheet_id_here\n"
            "# GOOGLE_SHEETS_CREDENTIALS_PATH=/path/to/service_account.json"
        ),
    }


def expense_to_sheets_row(expense: Expense) -> list:
    """Convert an expense to a [date, description, amount, category, id] row."""
    return [
        expense.date.isoformat(),
        expense.description,
        expense.amount,
        expense.category.value,
        expense.id,
    ]


def sheets_row_to_expense(row: list) -> Optional[Expense]:
    """
    Convert a spreadsheet row to an expense.

    Returns None for rows with fewer than five cells or cells that
    do not form a valid expense.
    """
    if len(row) < len(CSV_HEADERS):
        return None

    try:
        return Expense(
            date=str(row[0]).strip(),
            description=str(row[1]),
            amount=parse_amount(str(row[2])),
            category=str(row[3]).strip(),
            id=str(row[4]).strip(),
        )
    except ValidationError:
        return None


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Authorizes with a service account when a credentials file is
    configured, otherwise with the API key.
    """

    def __init__(
        self,
        settings: Optional[GoogleSheetsSettings] = None,
        client: Optional[gspread.Client] = None,
    ):
        self._settings = settings or get_settings().google_sheets
        self._client = client
        self._spreadsheet: Optional[gspread.Spreadsheet] = None

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    def connect(self) -> gspread.Client:
        """Establish the connection to Google Sheets."""
        if self._client is None:
            try:
                if self._settings.credentials_path:
                    credentials = Credentials.from_service_account_file(
                        self._settings.credentials_path,
                        scopes=SCOPES,
                    )
                    self._client = gspread.authorize(credentials)
                else:
                    self._client = gspread.api_key(self._settings.api_key)
            except FileNotFoundError:
                raise SyncError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise SyncError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise SyncError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the expenses worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.worksheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.worksheet_name,
                rows=1000,
                cols=len(CSV_HEADERS),
            )
            sheet.append_row(CSV_HEADERS)
        return sheet


class GoogleSheetsGateway(MirrorGateway):
    """
    Google Sheets implementation of the expense mirror.

    One expense per row, header row first.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        settings: Optional[GoogleSheetsSettings] = None,
    ):
        self._client = client or GoogleSheetsClient(settings)
        self._settings = settings or self._client.settings

    @property
    def is_configured(self) -> bool:
        return validate_config(self._settings).is_valid

    def _read_rows(self) -> list[list]:
        """
        Read every data row (header excluded).

        Raises:
            SyncError: If the sheet cannot be read
        """
        if not self.is_configured:
            raise SyncError("Google Sheets API not configured")
        try:
            return self._client.get_expenses_sheet().get_all_values()[1:]
        except SyncError:
            raise
        except Exception as e:
            raise SyncError(f"Failed to read expenses from Google Sheets: {e}")

    async def push_new(self, expenses: list[Expense]) -> bool:
        """Append expenses as raw rows."""
        if not self.is_configured:
            logger.warning("sheets_not_configured", operation="push")
            return False
        if not expenses:
            return True

        try:
            sheet = self._client.get_expenses_sheet()
            sheet.append_rows(
                [expense_to_sheets_row(expense) for expense in expenses],
                value_input_option="RAW",
            )
        except Exception as e:
            logger.error("sheets_append_failed", count=len(expenses), error=str(e))
            return False

        logger.info("sheets_append_ok", count=len(expenses))
        return True

    async def pull_all(self) -> list[Expense]:
        """Read all mirrored expenses, dropping malformed rows."""
        try:
            rows = self._read_rows()
        except SyncError as e:
            logger.error("sheets_read_failed", error=str(e))
            return []

        expenses = []
        for row in rows:
            expense = sheets_row_to_expense(row)
            if expense is not None:
                expenses.append(expense)
        return expenses

    async def remote_ids(self) -> set[str]:
        """
        Ids in column E of every row with at least five cells.

        Rows that fail expense validation (a hand-edited category, an
        overlong description) still count, so they are not pushed again.
        """
        return {
            str(row[4]).strip()
            for row in self._read_rows()
            if len(row) >= len(CSV_HEADERS) and str(row[4]).strip()
        }
