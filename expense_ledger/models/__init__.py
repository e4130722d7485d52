"""
Data Models Package

All data flowing through the ledger conforms to these Pydantic schemas.
"""

from expense_ledger.models.expense import (
    LEDGER_SCHEMA_VERSION,
    CsvExport,
    Expense,
    ExpenseCategory,
    ExpenseFilter,
    ExpenseInput,
    ExportFormat,
    ImportResult,
    LedgerBackup,
    LedgerSnapshot,
    LedgerStatistics,
    SaveResult,
    SheetsConfigStatus,
    StorageStats,
    SubmissionResult,
    SyncResult,
    Theme,
    UserSettings,
    ValidationIssue,
    ValidationResult,
    generate_expense_id,
)
from expense_ledger.models.audit import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
    LedgerEventType,
)

__all__ = [
    # Expense models
    "LEDGER_SCHEMA_VERSION",
    "CsvExport",
    "Expense",
    "ExpenseCategory",
    "ExpenseFilter",
    "ExpenseInput",
    "ExportFormat",
    "ImportResult",
    "LedgerBackup",
    "LedgerSnapshot",
    "LedgerStatistics",
    "SaveResult",
    "SheetsConfigStatus",
    "StorageStats",
    "SubmissionResult",
    "SyncResult",
    "Theme",
    "UserSettings",
    "ValidationIssue",
    "ValidationResult",
    "generate_expense_id",
    # Activity events
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventSeverity",
    "LedgerEventType",
]
