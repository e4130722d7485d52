"""
Tests for the Google Sheets mirror.

gspread is replaced by small in-process fakes; no network access.
"""

import asyncio

import gspread
import pytest

from expense_ledger.config import GoogleSheetsSettings
from expense_ledger.models.expense import Expense
from expense_ledger.services.sync import (
    GoogleSheetsClient,
    GoogleSheetsGateway,
    MirrorGateway,
    SyncError,
    expense_to_sheets_row,
    setup_guide,
    sheets_row_to_expense,
    validate_config,
)

HEADERS = ["Date", "Description", "Amount", "Category", "ID"]


class FakeWorksheet:
    def __init__(self, rows=None):
        self.rows = [list(r) for r in (rows or [])]
        self.fail_reads = False
        self.fail_writes = False
        self.append_calls = []

    def get_all_values(self):
        if self.fail_reads:
            raise gspread.exceptions.GSpreadException("read timeout")
        return [[str(cell) for cell in row] for row in self.rows]

    def append_row(self, row):
        self.rows.append(list(row))

    def append_rows(self, rows, value_input_option=None):
        if self.fail_writes:
            raise gspread.exceptions.GSpreadException("quota exceeded")
        self.append_calls.append((rows, value_input_option))
        self.rows.extend(list(r) for r in rows)


class FakeSpreadsheet:
    def __init__(self, worksheets=None):
        self.worksheets = dict(worksheets or {})

    def worksheet(self, title):
        if title not in self.worksheets:
            raise gspread.WorksheetNotFound(title)
        return self.worksheets[title]

    def add_worksheet(self, title, rows, cols):
        sheet = FakeWorksheet()
        self.worksheets[title] = sheet
        return sheet


class FakeClient:
    def __init__(self, spreadsheet):
        self.spreadsheet = spreadsheet
        self.opened = []

    def open_by_key(self, key):
        self.opened.append(key)
        return self.spreadsheet


@pytest.fixture
def sheets_settings():
    return GoogleSheetsSettings(
        api_key="test-key",
        spreadsheet_id="sheet-123",
        credentials_path="",
        worksheet_name="Expenses",
    )


@pytest.fixture
def worksheet():
    return FakeWorksheet([HEADERS])


@pytest.fixture
def gateway(sheets_settings, worksheet):
    client = GoogleSheetsClient(
        sheets_settings,
        client=FakeClient(FakeSpreadsheet({"Expenses": worksheet})),
    )
    return GoogleSheetsGateway(client=client, settings=sheets_settings)


def make_expense(expense_id, amount=10.0):
    return Expense(id=expense_id, date="2024-01-05", description=f"Item {expense_id}", amount=amount, category="Food")


class TestConfig:
    """Tests for configuration checks."""

    def test_valid_config(self, sheets_settings):
        """Test both required settings present."""
        status = validate_config(sheets_settings)
        assert status.is_valid is True
        assert status.missing_config == []

    def test_missing_config_lists_names(self):
        """Test every missing setting is named."""
        status = validate_config(GoogleSheetsSettings(api_key="", spreadsheet_id="", credentials_path=""))
        assert status.is_valid is False
        assert status.missing_config == ["GOOGLE_SHEETS_API_KEY", "GOOGLE_SHEETS_SPREADSHEET_ID"]

    def test_setup_guide(self):
        """Test the guide mentions the variables to set."""
        guide = setup_guide()
        assert len(guide["steps"]) == 9
        assert "GOOGLE_SHEETS_SPREADSHEET_ID" in guide["example_env"]


class TestRowMapping:
    """Tests for positional row mapping."""

    def test_round_trip(self):
        """Test an expense survives the sheet row form."""
        expense = make_expense("e1", amount=12.5)
        row = [str(cell) for cell in expense_to_sheets_row(expense)]
        assert sheets_row_to_expense(row) == expense

    def test_short_row_dropped(self):
        """Test rows with fewer than five cells are ignored."""
        assert sheets_row_to_expense(["2024-01-05", "Lunch", "10"]) is None

    def test_invalid_row_dropped(self):
        """Test rows that do not form an expense are ignored."""
        assert sheets_row_to_expense(["not a date", "Lunch", "10", "Food", "x"]) is None


class TestGateway:
    """Tests for push, pull and synchronize."""

    def test_push_appends_raw_rows(self, gateway, worksheet):
        """Test expenses are appended in column order."""
        ok = asyncio.run(gateway.push_new([make_expense("e1")]))
        assert ok is True
        rows, option = worksheet.append_calls[0]
        assert option == "RAW"
        assert rows == [["2024-01-05", "Item e1", 10.0, "Food", "e1"]]

    def test_push_failure_returns_false(self, gateway, worksheet):
        """Test API errors become False."""
        worksheet.fail_writes = True
        assert asyncio.run(gateway.push_new([make_expense("e1")])) is False

    def test_push_without_config_returns_false(self, worksheet):
        """Test an unconfigured gateway never touches the sheet."""
        settings = GoogleSheetsSettings(api_key="", spreadsheet_id="", credentials_path="")
        client = GoogleSheetsClient(settings, client=FakeClient(FakeSpreadsheet({"Expenses": worksheet})))
        gateway = GoogleSheetsGateway(client=client, settings=settings)
        assert asyncio.run(gateway.push_new([make_expense("e1")])) is False
        assert worksheet.append_calls == []

    def test_pull_skips_header_and_bad_rows(self, gateway, worksheet):
        """Test malformed rows are dropped."""
        worksheet.rows.extend([
            ["2024-01-05", "Lunch", "10", "Food", "r1"],
            ["2024-01-06", "Short"],
        ])
        expenses = asyncio.run(gateway.pull_all())
        assert [e.id for e in expenses] == ["r1"]

    def test_pull_failure_returns_empty(self, gateway, worksheet):
        """Test read errors become an empty list."""
        worksheet.fail_reads = True
        assert asyncio.run(gateway.pull_all()) == []

    def test_missing_worksheet_is_created(self, sheets_settings):
        """Test the expenses worksheet is added with headers."""
        spreadsheet = FakeSpreadsheet()
        client = GoogleSheetsClient(sheets_settings, client=FakeClient(spreadsheet))
        gateway = GoogleSheetsGateway(client=client, settings=sheets_settings)

        assert asyncio.run(gateway.pull_all()) == []
        assert spreadsheet.worksheets["Expenses"].rows == [HEADERS]

    def test_synchronize_pushes_only_unseen(self, gateway, worksheet):
        """Test the id set-difference."""
        worksheet.rows.append(["2024-01-05", "Item e1", "10", "Food", "e1"])
        result = asyncio.run(gateway.synchronize([make_expense("e1"), make_expense("e2")]))
        assert result.success is True
        assert result.synced == 1
        assert [row[4] for row in worksheet.rows[1:]] == ["e1", "e2"]

    def test_synchronize_nothing_new(self, gateway, worksheet):
        """Test an up-to-date sheet is a successful no-op."""
        worksheet.rows.append(["2024-01-05", "Item e1", "10", "Food", "e1"])
        result = asyncio.run(gateway.synchronize([make_expense("e1")]))
        assert result.success is True
        assert result.synced == 0
        assert worksheet.append_calls == []

    def test_synchronize_aborts_when_read_fails(self, gateway, worksheet):
        """Test a failed read does not push everything again."""
        worksheet.fail_reads = True
        result = asyncio.run(gateway.synchronize([make_expense("e1")]))
        assert result.success is False
        assert result.synced == 0
        assert result.errors
        assert worksheet.append_calls == []

    def test_synchronize_reports_push_failure(self, gateway, worksheet):
        """Test a failed append is reported."""
        worksheet.fail_writes = True
        result = asyncio.run(gateway.synchronize([make_expense("e1")]))
        assert result.success is False
        assert result.errors == ["Failed to append expenses to the mirror"]

    def test_synchronize_counts_ids_of_invalid_rows(self, gateway, worksheet):
        """Test a row that fails validation still marks its id as mirrored."""
        worksheet.rows.extend([
            ["2024-01-05", "Item a", "10", "food", "a"],
            ["2024-01-05", "x" * 150, "10", "Food", "b"],
        ])
        assert asyncio.run(gateway.pull_all()) == []

        result = asyncio.run(gateway.synchronize([make_expense("a"), make_expense("b")]))

        assert result.success is True
        assert result.synced == 0
        assert worksheet.append_calls == []

    def test_remote_ids_ignore_short_rows(self, gateway, worksheet):
        """Test only rows with an id column contribute ids."""
        worksheet.rows.extend([
            ["2024-01-05", "Lunch", "10", "Food", " r1 "],
            ["2024-01-06", "Short", "10", "r2"],
            ["2024-01-07", "No id", "10", "Food", ""],
        ])
        assert asyncio.run(gateway.remote_ids()) == {"r1"}


class TestClient:
    """Tests for the low-level client wrapper."""

    def test_missing_credentials_file(self, tmp_path):
        """Test an absent service account file raises SyncError."""
        with pytest.warns(UserWarning):
            settings = GoogleSheetsSettings(
                spreadsheet_id="sheet-123",
                credentials_path=str(tmp_path / "missing.json"),
            )
        with pytest.raises(SyncError, match="not found"):
            GoogleSheetsClient(settings).connect()

    def test_spreadsheet_opened_once(self, sheets_settings):
        """Test the spreadsheet handle is cached."""
        fake = FakeClient(FakeSpreadsheet())
        client = GoogleSheetsClient(sheets_settings, client=fake)
        client.get_spreadsheet()
        client.get_spreadsheet()
        assert fake.opened == ["sheet-123"]


class InMemoryMirror(MirrorGateway):
    """Minimal mirror used to exercise the default synchronize()."""

    def __init__(self):
        self.rows = []

    async def push_new(self, expenses):
        self.rows.extend(expenses)
        return True

    async def pull_all(self):
        return list(self.rows)


class TestMirrorInterface:
    """Tests for the interface's default synchronize."""

    def test_default_synchronize(self):
        """Test repeated syncs push each expense once."""
        mirror = InMemoryMirror()
        local = [make_expense("e1"), make_expense("e2")]

        first = asyncio.run(mirror.synchronize(local))
        second = asyncio.run(mirror.synchronize(local))

        assert first.synced == 2
        assert second.synced == 0
        assert [e.id for e in mirror.rows] == ["e1", "e2"]

    def test_unreadable_mirror_aborts(self):
        """Test a read error stops the sync before anything is pushed."""

        class UnreadableMirror(InMemoryMirror):
            async def remote_ids(self):
                raise SyncError("offline")

        mirror = UnreadableMirror()
        result = asyncio.run(mirror.synchronize([make_expense("e1")]))

        assert result.success is False
        assert result.errors == ["Sync error: offline"]
        assert mirror.rows == []
