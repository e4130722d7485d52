"""
Sync Services Package

Best-effort outward mirroring of expenses. Google Sheets is the only
implementation.
"""

from expense_ledger.services.sync.interface import MirrorGateway, SyncError
from expense_ledger.services.sync.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsGateway,
    expense_to_sheets_row,
    setup_guide,
    sheets_row_to_expense,
    validate_config,
)

__all__ = [
    "GoogleSheetsClient",
    "GoogleSheetsGateway",
    "MirrorGateway",
    "SyncError",
    "expense_to_sheets_row",
    "setup_guide",
    "sheets_row_to_expense",
    "validate_config",
]
