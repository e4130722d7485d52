"""Activity logging package."""

from expense_ledger.audit.logger import ActivityLogger, configure_logging

__all__ = ["ActivityLogger", "configure_logging"]
