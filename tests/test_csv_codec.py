"""Tests for CSV encoding, decoding and export filenames."""

import pytest
from datetime import date

from expense_ledger.ledger import csv_codec
from expense_ledger.models.expense import Expense

HEADER = "Date,Description,Amount,Category,ID"


@pytest.fixture
def tricky_expenses():
    return [
        Expense(id="a1", date="2024-01-05", description='Pizza, "large"', amount=12.5, category="Food"),
        Expense(id="a2", date="2024-01-06", description="Café crème ☕", amount=3, category="Food"),
        Expense(id="a3", date="2024-02-01", description="Train\nticket", amount=0.1, category="Travel"),
        Expense(id="a4", date="2024-02-02", description="Rent", amount=15000, category="Housing"),
    ]


class TestEncode:
    """Tests for CSV encoding."""

    def test_empty_collection_is_header_only(self):
        """Test the header is emitted for no expenses."""
        assert csv_codec.encode([]) == HEADER + "\n"

    def test_row_layout(self):
        """Test only the description is quoted, quotes doubled."""
        expense = Expense(id="x", date="2024-01-05", description='Say "hi"', amount=100, category="Other")
        assert csv_codec.encode([expense]) == f'{HEADER}\n2024-01-05,"Say ""hi""",100,Other,x'

    def test_amount_formatting(self):
        """Test amounts are written in their natural decimal form."""
        assert csv_codec.format_amount(100.0) == "100"
        assert csv_codec.format_amount(12.5) == "12.5"
        assert csv_codec.format_amount(0.1) == "0.1"


class TestDecode:
    """Tests for CSV decoding."""

    def test_round_trip(self, tricky_expenses):
        """Test commas, quotes, newlines and Unicode survive encode/decode."""
        assert csv_codec.decode(csv_codec.encode(tricky_expenses)) == tricky_expenses

    def test_header_only(self):
        """Test a header-only file yields no expenses."""
        assert csv_codec.decode(HEADER + "\n") == []
        assert csv_codec.decode("") == []

    def test_short_row_is_dropped(self):
        """Test a row with three columns is skipped, the rest import."""
        text = "\n".join([
            HEADER,
            '2024-01-05,"Lunch",10,Food,r1',
            '2024-01-06,"Broken",10',
            '2024-01-07,"Dinner",20,Food,r3',
        ])
        result = csv_codec.decode(text)
        assert [e.id for e in result] == ["r1", "r3"]

    def test_unreadable_amount_becomes_zero(self):
        """Test a non-numeric amount is imported as 0."""
        text = f'{HEADER}\n2024-01-05,"Lunch",abc,Food,r1'
        result = csv_codec.decode(text)
        assert len(result) == 1
        assert result[0].amount == 0

    def test_invalid_row_is_dropped(self):
        """Test rows that do not form a valid expense are skipped."""
        text = "\n".join([
            HEADER,
            '2024-13-45,"Bad date",10,Food,r1',
            '2024-01-05,"Bad category",10,Gadgets,r2',
            '2024-01-05,"Good",10,Food,r3',
        ])
        assert [e.id for e in csv_codec.decode(text)] == ["r3"]

    def test_oversized_field_drops_only_that_row(self):
        """Test a field beyond the csv module's size limit skips one row."""
        text = "\n".join([
            HEADER,
            '2024-01-05,"Lunch",10,Food,a',
            f'2024-01-06,"{"x" * 200000}",10,Food,big',
            '2024-01-07,"Dinner",20,Food,b',
        ])
        assert [e.id for e in csv_codec.decode(text)] == ["a", "b"]

    def test_nul_byte_does_not_abort(self):
        """Test a NUL byte never stops the rows around it from importing."""
        text = "\n".join([
            HEADER,
            '2024-01-05,"Lunch",10,Food,r1',
            '2024-01-06,"Bad\x00byte",10,Food,r2',
            '2024-01-07,"Dinner",20,Food,r3',
        ])
        ids = [e.id for e in csv_codec.decode(text)]
        assert ids[0] == "r1"
        assert ids[-1] == "r3"

    def test_crlf_line_endings(self):
        """Test files saved by spreadsheet programs."""
        text = f'{HEADER}\r\n2024-01-05,"Lunch",10,Food,r1\r\n'
        result = csv_codec.decode(text)
        assert [e.id for e in result] == ["r1"]

    def test_file_round_trip(self, tmp_path, tricky_expenses):
        """Test writing and reading a CSV file."""
        path = csv_codec.write_csv_file(tmp_path / "out.csv", tricky_expenses)
        assert csv_codec.read_csv_file(path) == tricky_expenses

    def test_read_file_with_bom(self, tmp_path):
        """Test a leading byte-order mark is ignored."""
        path = tmp_path / "bom.csv"
        path.write_bytes(("\ufeff" + f'{HEADER}\n2024-01-05,"Lunch",10,Food,r1').encode("utf-8"))
        assert [e.id for e in csv_codec.read_csv_file(path)] == ["r1"]


class TestGenerateFilename:
    """Tests for export filenames."""

    def test_date_range_and_category(self):
        """Test the full filter form."""
        name = csv_codec.generate_filename(date(2024, 1, 1), date(2024, 1, 31), "Food")
        assert name == "expenses_2024-01-01_to_2024-01-31_food.csv"

    def test_start_date_only(self):
        """Test an open-ended range."""
        assert csv_codec.generate_filename("2024-01-01") == "expenses_from_2024-01-01.csv"

    def test_no_filter_uses_today(self):
        """Test the fallback to today's date."""
        assert csv_codec.generate_filename(today=date(2024, 5, 9)) == "expenses_2024-05-09.csv"

    def test_category_only(self):
        """Test a category with no date range."""
        name = csv_codec.generate_filename(category="Food", today=date(2024, 5, 9))
        assert name == "expenses_2024-05-09_food.csv"
