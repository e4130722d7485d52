"""
Expense Ledger - Source Package

A personal expense tracker that keeps its records locally and can
mirror them to a Google Sheets spreadsheet.

DESIGN PRINCIPLES:
1. Local storage is the source of truth
2. Fail visibly: rejected input and failed saves are reported, not hidden
3. No silent corrections of user input
4. Every change is written to the activity log
5. Storage medium and mirror are swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"
