"""
CSV Codec

Column order is fixed: Date, Description, Amount, Category, ID.

Encoding quotes only the Description column (doubling any embedded
quotes); the other columns never contain commas or quotes. Decoding is
tolerant: short rows and rows that do not form a valid expense are
dropped, and an unreadable amount becomes 0. One bad row never aborts
an import.
"""

import csv
import io
import math
import re
from datetime import date
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

import structlog
from pydantic import ValidationError

from expense_ledger.models.expense import Expense


logger = structlog.get_logger(__name__)

CSV_HEADERS = ["Date", "Description", "Amount", "Category", "ID"]
CSV_HEADER_LINE = ",".join(CSV_HEADERS)


def format_amount(amount: float) -> str:
    """Natural decimal form: 100.0 -> "100", 12.5 -> "12.5"."""
    if float(amount).is_integer():
        return str(int(amount))
    return repr(float(amount))


def parse_amount(text: str) -> float:
    """Parse an amount cell; anything unreadable or non-finite is 0."""
    try:
        value = float(text.strip())
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def quote_field(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def expense_to_row(expense: Expense) -> str:
    return ",".join([
        expense.date.isoformat(),
        quote_field(expense.description),
        format_amount(expense.amount),
        expense.category.value,
        expense.id,
    ])


def encode(expenses: Iterable[Expense]) -> str:
    """
    Serialize expenses to CSV text in input order.

    An empty collection still yields the header line.
    """
    rows = [expense_to_row(expense) for expense in expenses]
    if not rows:
        return CSV_HEADER_LINE + "\n"
    return "\n".join([CSV_HEADER_LINE, *rows])


def _iter_rows(text: str) -> Iterator[tuple[int, list[str]]]:
    """
    Yield (row_number, cells), skipping records the csv module refuses
    (an oversized field, a NUL byte). The reader resumes on the next line.
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    row_number = 0
    while True:
        row_number += 1
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            logger.warning(
                "csv_row_dropped",
                row=row_number,
                reason="unparseable",
                error=str(e),
            )
            continue
        yield row_number, row


def decode(text: str) -> list[Expense]:
    """
    Parse CSV text back into expenses. The first row is always the header.
    """
    expenses = []

    for row_number, row in _iter_rows(text):
        if row_number == 1:
            continue

        if len(row) < len(CSV_HEADERS):
            if row:
                logger.warning("csv_row_dropped", row=row_number, reason="too_few_columns")
            continue

        try:
            expenses.append(Expense(
                date=row[0].strip(),
                description=row[1],
                amount=parse_amount(row[2]),
                category=row[3].strip(),
                id=row[4].strip(),
            ))
        except ValidationError as e:
            logger.warning(
                "csv_row_dropped",
                row=row_number,
                reason="invalid_expense",
                error=str(e),
            )

    return expenses


def generate_filename(
    start_date: Optional[Union[date, str]] = None,
    end_date: Optional[Union[date, str]] = None,
    category: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """
    Build an export filename from the active filter, e.g.
    expenses_2024-01-01_to_2024-01-31_food.csv.
    """
    today = today or date.today()
    name = f"expenses_{today.isoformat()}"

    if start_date and end_date:
        name = f"expenses_{start_date}_to_{end_date}"
    elif start_date:
        name = f"expenses_from_{start_date}"

    if category:
        label = getattr(category, "value", category)
        name += "_" + re.sub(r"\s+", "_", label.lower())

    return f"{name}.csv"


def write_csv_file(path: Union[str, Path], expenses: Iterable[Expense]) -> Path:
    path = Path(path)
    path.write_text(encode(expenses), encoding="utf-8", newline="")
    return path


def read_csv_file(path: Union[str, Path]) -> list[Expense]:
    # utf-8-sig drops the BOM spreadsheet programs like to prepend
    return decode(Path(path).read_text(encoding="utf-8-sig"))
