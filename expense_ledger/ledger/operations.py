"""
Ledger Operations

DESIGN DECISION: Everything here is a pure function over a list of
expenses. Nothing reads or writes the record store; callers load a
snapshot, compute, and decide what to persist.

Grouping preserves first-encountered order, which is what makes the
top-category tie-break deterministic.
"""

from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from expense_ledger.models.expense import (
    Expense,
    ExpenseFilter,
    LedgerStatistics,
)


def filter_expenses(
    expenses: Iterable[Expense],
    criteria: Optional[ExpenseFilter] = None,
    **kwargs,
) -> list[Expense]:
    """
    Return the expenses matching every given criterion.

    Criteria can be passed as an ExpenseFilter or as keyword arguments
    (start_date, end_date, category, search_term). Date bounds are
    inclusive. The search term matches description or category label,
    case-insensitively.
    """
    if criteria is None:
        criteria = ExpenseFilter(**kwargs)
    elif kwargs:
        criteria = criteria.model_copy(
            update=ExpenseFilter(**kwargs).model_dump(exclude_unset=True)
        )

    term = criteria.search_term.lower() if criteria.search_term else None

    matches = []
    for expense in expenses:
        if criteria.start_date and expense.date < criteria.start_date:
            continue
        if criteria.end_date and expense.date > criteria.end_date:
            continue
        if criteria.category and expense.category != criteria.category:
            continue
        if term and (
            term not in expense.description.lower()
            and term not in expense.category.value.lower()
        ):
            continue
        matches.append(expense)

    return matches


def sort_expenses(expenses: Iterable[Expense], newest_first: bool = True) -> list[Expense]:
    """Sort by date. Expenses on the same date keep their relative order."""
    return sorted(expenses, key=lambda e: e.date, reverse=newest_first)


def total(expenses: Iterable[Expense]) -> float:
    return sum((expense.amount for expense in expenses), 0.0)


def average(expenses: Iterable[Expense]) -> float:
    """Mean amount; 0 for an empty collection."""
    expenses = list(expenses)
    if not expenses:
        return 0.0
    return total(expenses) / len(expenses)


def group_by_category(expenses: Iterable[Expense]) -> dict[str, list[Expense]]:
    """Group expenses by category label, in first-encountered order."""
    groups = defaultdict(list)
    for expense in expenses:
        groups[expense.category.value].append(expense)
    return dict(groups)


def category_totals(expenses: Iterable[Expense]) -> dict[str, float]:
    """Running total per category label, in first-encountered order."""
    totals: dict[str, float] = {}
    for expense in expenses:
        key = expense.category.value
        totals[key] = totals.get(key, 0) + expense.amount
    return totals


def top_category(expenses: Iterable[Expense]) -> tuple[str, float]:
    """
    Category with the highest total.

    Ties go to the category encountered first (sorted() is stable).
    Returns ("None", 0) for no expenses.
    """
    ranked = sorted(
        category_totals(expenses).items(),
        key=lambda item: item[1],
        reverse=True,
    )
    if not ranked:
        return "None", 0.0
    return ranked[0]


def group_by_month(expenses: Iterable[Expense]) -> dict[str, list[Expense]]:
    """Group expenses by YYYY-MM, in first-encountered order."""
    groups = defaultdict(list)
    for expense in expenses:
        groups[expense.date.strftime("%Y-%m")].append(expense)
    return dict(groups)


def monthly_totals(expenses: Iterable[Expense]) -> dict[str, float]:
    return {
        month: total(items)
        for month, items in group_by_month(expenses).items()
    }


def _previous_month(day: date) -> tuple[int, int]:
    if day.month == 1:
        return day.year - 1, 12
    return day.year, day.month - 1


def month_total(expenses: Iterable[Expense], year: int, month: int) -> float:
    return sum(
        expense.amount
        for expense in expenses
        if expense.date.year == year and expense.date.month == month
    )


def month_over_month(current: float, previous: float) -> tuple[float, bool]:
    """
    Absolute percentage change from previous to current, and whether
    spending went up. No previous spending means no change.
    """
    if previous == 0:
        return 0.0, False
    percent = (current - previous) / previous * 100
    return abs(percent), current >= previous


def daily_average(expenses: Iterable[Expense]) -> float:
    """Total divided by the day span between oldest and newest (at least 1)."""
    expenses = list(expenses)
    if not expenses:
        return 0.0
    dates = [expense.date for expense in expenses]
    days = max(1, (max(dates) - min(dates)).days)
    return total(expenses) / days


def aggregate(expenses: Iterable[Expense], today: Optional[date] = None) -> LedgerStatistics:
    """
    Compute the derived statistics for a collection.

    `today` decides which month is "this month"; defaults to date.today().
    """
    expenses = list(expenses)
    if not expenses:
        return LedgerStatistics()

    today = today or date.today()
    this_month = month_total(expenses, today.year, today.month)
    last_month = month_total(expenses, *_previous_month(today))
    change_percent, is_increase = month_over_month(this_month, last_month)
    top_label, top_amount = top_category(expenses)

    return LedgerStatistics(
        total=total(expenses),
        count=len(expenses),
        average=average(expenses),
        this_month=this_month,
        last_month=last_month,
        month_change_percent=change_percent,
        month_change_is_increase=is_increase,
        top_category=top_label,
        top_category_amount=top_amount,
        daily_average=daily_average(expenses),
    )
