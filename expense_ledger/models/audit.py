"""
Activity Event Models for Expense Ledger

Every mutation of the ledger and every outward sync produces one event.
Events are written to the structured log; they are not persisted in the
record store.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we record."""
    # Ledger mutations
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSE_REJECTED = "expense_rejected"
    LEDGER_CLEARED = "ledger_cleared"

    # Persistence
    SAVE_FAILED = "save_failed"

    # Import / export
    CSV_EXPORTED = "csv_exported"
    CSV_IMPORTED = "csv_imported"
    BACKUP_RESTORED = "backup_restored"

    # Spreadsheet mirror
    SYNC_COMPLETED = "sync_completed"
    SYNC_FAILED = "sync_failed"


class LedgerEventSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single activity event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )
    event_type: LedgerEventType
    severity: LedgerEventSeverity = LedgerEventSeverity.INFO
    expense_id: Optional[str] = Field(
        default=None,
        description="ID of the expense this event relates to, if any"
    )
    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "expense_id": self.expense_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.expense_added(expense_id, amount, category)
    """

    @staticmethod
    def expense_added(expense_id: str, amount: float, category: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_ADDED,
            expense_id=expense_id,
            description=f"Expense added: {amount} in {category}",
            details={"amount": amount, "category": category},
        )

    @staticmethod
    def expense_updated(expense_id: str, fields: list[str]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_UPDATED,
            expense_id=expense_id,
            description=f"Expense updated: {', '.join(fields) or 'no fields'}",
            details={"fields": fields},
        )

    @staticmethod
    def expense_deleted(expense_id: str, found: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_DELETED,
            expense_id=expense_id,
            description="Expense deleted" if found else "Delete requested for unknown expense",
            details={"found": found},
        )

    @staticmethod
    def expense_rejected(issues: list[dict]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EXPENSE_REJECTED,
            severity=LedgerEventSeverity.WARNING,
            description=f"Expense rejected with {len(issues)} issue(s)",
            details={"issues": issues},
        )

    @staticmethod
    def ledger_cleared() -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_CLEARED,
            severity=LedgerEventSeverity.WARNING,
            description="All expenses removed",
        )

    @staticmethod
    def save_failed(reason: Optional[str]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SAVE_FAILED,
            severity=LedgerEventSeverity.ERROR,
            description="Ledger could not be persisted",
            error_message=reason,
        )

    @staticmethod
    def csv_exported(filename: str, row_count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CSV_EXPORTED,
            description=f"Exported {row_count} expense(s) to {filename}",
            details={"filename": filename, "row_count": row_count},
        )

    @staticmethod
    def csv_imported(imported: int, skipped: int, replaced: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.CSV_IMPORTED,
            description=f"Imported {imported} expense(s) from CSV",
            details={"imported": imported, "skipped": skipped, "replaced": replaced},
        )

    @staticmethod
    def backup_restored(expense_count: int, with_settings: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.BACKUP_RESTORED,
            severity=LedgerEventSeverity.WARNING,
            description=f"Backup restored with {expense_count} expense(s)",
            details={"expense_count": expense_count, "with_settings": with_settings},
        )

    @staticmethod
    def sync_completed(synced: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SYNC_COMPLETED,
            description=f"Mirrored {synced} expense(s) to the spreadsheet",
            details={"synced": synced},
        )

    @staticmethod
    def sync_failed(errors: list[str]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SYNC_FAILED,
            severity=LedgerEventSeverity.WARNING,
            description="Spreadsheet sync failed",
            details={"errors": errors},
            error_message="; ".join(errors) or None,
        )
