"""Ledger operations and CSV codec."""

from expense_ledger.ledger import csv_codec
from expense_ledger.ledger.operations import (
    aggregate,
    average,
    category_totals,
    daily_average,
    filter_expenses,
    group_by_category,
    group_by_month,
    month_over_month,
    month_total,
    monthly_totals,
    sort_expenses,
    top_category,
    total,
)

__all__ = [
    "aggregate",
    "average",
    "category_totals",
    "csv_codec",
    "daily_average",
    "filter_expenses",
    "group_by_category",
    "group_by_month",
    "month_over_month",
    "month_total",
    "monthly_totals",
    "sort_expenses",
    "top_category",
    "total",
]
