"""Expense input validation package."""

from expense_ledger.validation.validator import ExpenseValidationError, ExpenseValidator

__all__ = ["ExpenseValidationError", "ExpenseValidator"]
