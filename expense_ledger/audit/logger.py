"""
Activity Logger

DESIGN DECISION: Every ledger mutation, import, export and sync attempt is
logged as a structured event. This provides:
1. Traceability of what happened to the ledger
2. Debugging capability when a save or sync silently fails

The activity logger never raises; logging must not break the main flow.
"""

from typing import Optional

import structlog

from expense_ledger.models.audit import (
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventSeverity,
)
from expense_ledger.models.expense import Expense, ValidationResult


def configure_logging(json_output: bool = True) -> None:
    """
    Configure structlog for the whole package.

    JSON lines by default; console rendering for interactive use.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class ActivityLogger:
    """
    Central activity logging service.

    Writes LedgerEvents to the structured log at a level matching
    their severity.
    """

    def __init__(self, logger_name: str = "expense_ledger.activity"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: LedgerEvent) -> None:
        """Log an activity event."""
        log_dict = event.to_log_dict()

        if event.severity == LedgerEventSeverity.ERROR:
            self._logger.error("ledger_event", **log_dict)
        elif event.severity == LedgerEventSeverity.WARNING:
            self._logger.warning("ledger_event", **log_dict)
        elif event.severity == LedgerEventSeverity.DEBUG:
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)

    def log_expense_added(self, expense: Expense) -> None:
        self.log(LedgerEventBuilder.expense_added(
            expense_id=expense.id,
            amount=expense.amount,
            category=expense.category.value,
        ))

    def log_expense_updated(self, expense_id: str, fields: list[str]) -> None:
        self.log(LedgerEventBuilder.expense_updated(expense_id, fields))

    def log_expense_deleted(self, expense_id: str, found: bool) -> None:
        self.log(LedgerEventBuilder.expense_deleted(expense_id, found))

    def log_expense_rejected(self, result: ValidationResult) -> None:
        issues = [
            {"field": i.field, "type": i.issue_type, "message": i.message}
            for i in result.issues
            if i.severity == "error"
        ]
        self.log(LedgerEventBuilder.expense_rejected(issues))

    def log_ledger_cleared(self) -> None:
        self.log(LedgerEventBuilder.ledger_cleared())

    def log_save_failed(self, reason: Optional[str]) -> None:
        self.log(LedgerEventBuilder.save_failed(reason))

    def log_csv_exported(self, filename: str, row_count: int) -> None:
        self.log(LedgerEventBuilder.csv_exported(filename, row_count))

    def log_csv_imported(self, imported: int, skipped: int, replaced: bool) -> None:
        self.log(LedgerEventBuilder.csv_imported(imported, skipped, replaced))

    def log_backup_restored(self, expense_count: int, with_settings: bool) -> None:
        self.log(LedgerEventBuilder.backup_restored(expense_count, with_settings))

    def log_sync(self, synced: int, errors: list[str]) -> None:
        """Log the outcome of a mirror or sync attempt."""
        if errors:
            self.log(LedgerEventBuilder.sync_failed(errors))
        else:
            self.log(LedgerEventBuilder.sync_completed(synced))
