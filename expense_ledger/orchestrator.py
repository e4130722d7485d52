"""
Ledger Orchestrator

This module ties together the record store, validator, ledger
operations, CSV codec, activity log and optional spreadsheet mirror.

DESIGN DECISION: Failures are absorbed at the boundary closest to their
origin:
- Invalid input comes back as a failed SubmissionResult
- A rejected write comes back as a failed SaveResult (the in-memory
  collection is still returned)
- A failed mirror comes back as False or SyncResult.errors and never
  touches local data
"""

from datetime import date
from typing import Any, Callable, Optional, Union

import structlog

from expense_ledger.audit import ActivityLogger, configure_logging
from expense_ledger.config import Settings, get_settings
from expense_ledger.ledger import csv_codec, operations
from expense_ledger.models.expense import (
    CsvExport,
    Expense,
    ExpenseFilter,
    ImportResult,
    LedgerBackup,
    LedgerStatistics,
    SaveResult,
    StorageStats,
    SubmissionResult,
    SyncResult,
    UserSettings,
)
from expense_ledger.services.storage import (
    JsonFileBackend,
    LocalRecordStore,
    RecordStoreInterface,
)
from expense_ledger.services.sync import (
    GoogleSheetsGateway,
    MirrorGateway,
    validate_config,
)
from expense_ledger.validation import ExpenseValidator


logger = structlog.get_logger(__name__)

FilterLike = Union[ExpenseFilter, dict, None]


def _as_filter(criteria: FilterLike) -> ExpenseFilter:
    if criteria is None:
        return ExpenseFilter()
    if isinstance(criteria, ExpenseFilter):
        return criteria
    return ExpenseFilter(**criteria)


class ExpenseLedger:
    """
    Façade over the expense ledger.

    Local operations are synchronous. Only mirror() and sync() await the
    network, and their outcome never changes what was saved locally.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        validator: Optional[ExpenseValidator] = None,
        gateway: Optional[MirrorGateway] = None,
        activity_logger: Optional[ActivityLogger] = None,
    ):
        self._store = store
        self._validator = validator or ExpenseValidator(store)
        self._gateway = gateway
        self._activity = activity_logger or ActivityLogger()

    @property
    def store(self) -> RecordStoreInterface:
        return self._store

    @property
    def gateway(self) -> Optional[MirrorGateway]:
        return self._gateway

    def _check_save(self, result: Optional[SaveResult]) -> None:
        if result is not None and not result.success:
            self._activity.log_save_failed(result.reason)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def submit_expense(
        self,
        date: Any,
        description: Any,
        amount: Any,
        category: Any,
    ) -> SubmissionResult:
        """
        Validate form input and, if valid, add it to the ledger.

        Validation failures are returned, not raised.
        """
        validation = self._validator.validate({
            "date": date,
            "description": description,
            "amount": amount,
            "category": category,
        })
        message = self._validator.get_user_friendly_summary(validation)

        if not validation.is_valid:
            self._activity.log_expense_rejected(validation)
            return SubmissionResult(
                success=False,
                message=message,
                validation=validation,
                expenses=self._store.load().expenses,
            )

        expense = validation.expense_input.to_expense()
        expenses = self._store.add(expense)
        save_result = getattr(self._store, "last_save_result", None)

        self._activity.log_expense_added(expense)
        self._check_save(save_result)

        if save_result is not None and not save_result.success:
            message = f"{message}\n⚠️ The expense could not be saved: {save_result.reason}"

        return SubmissionResult(
            success=True,
            message=message,
            validation=validation,
            expense=expense,
            expenses=expenses,
            save_result=save_result,
        )

    def update_expense(self, expense_id: str, **changes) -> list[Expense]:
        """
        Change fields of an expense. Unknown ids are ignored.

        Raises:
            pydantic.ValidationError: If a changed value is invalid
        """
        before = {e.id for e in self._store.load().expenses}
        expenses = self._store.update(expense_id, changes)
        if expense_id in before:
            self._activity.log_expense_updated(expense_id, sorted(changes))
            self._check_save(getattr(self._store, "last_save_result", None))
        return expenses

    def delete_expense(self, expense_id: str) -> list[Expense]:
        """Remove an expense. Deleting an unknown id changes nothing."""
        count_before = len(self._store.load().expenses)
        expenses = self._store.delete(expense_id)
        found = len(expenses) < count_before
        self._activity.log_expense_deleted(expense_id, found)
        if found:
            self._check_save(getattr(self._store, "last_save_result", None))
        return expenses

    def clear(self) -> None:
        self._store.clear()
        self._activity.log_ledger_cleared()

    # -------------------------------------------------------------------------
    # Read views
    # -------------------------------------------------------------------------

    def list_expenses(
        self,
        criteria: FilterLike = None,
        newest_first: Optional[bool] = None,
    ) -> list[Expense]:
        """
        Filtered expenses. Insertion order unless newest_first is given.
        """
        expenses = operations.filter_expenses(
            self._store.load().expenses,
            _as_filter(criteria),
        )
        if newest_first is not None:
            expenses = operations.sort_expenses(expenses, newest_first=newest_first)
        return expenses

    def statistics(
        self,
        criteria: FilterLike = None,
        today: Optional[date] = None,
    ) -> LedgerStatistics:
        return operations.aggregate(self.list_expenses(criteria), today=today)

    def monthly_totals(self, criteria: FilterLike = None) -> dict[str, float]:
        return operations.monthly_totals(self.list_expenses(criteria))

    def category_totals(self, criteria: FilterLike = None) -> dict[str, float]:
        return operations.category_totals(self.list_expenses(criteria))

    # -------------------------------------------------------------------------
    # CSV
    # -------------------------------------------------------------------------

    def export_csv(
        self,
        criteria: FilterLike = None,
        today: Optional[date] = None,
    ) -> CsvExport:
        """Serialize the filtered view, named after the filter."""
        criteria = _as_filter(criteria)
        expenses = self.list_expenses(criteria)
        filename = csv_codec.generate_filename(
            start_date=criteria.start_date,
            end_date=criteria.end_date,
            category=criteria.category.value if criteria.category else None,
            today=today,
        )
        self._activity.log_csv_exported(filename, len(expenses))
        return CsvExport(
            filename=filename,
            content=csv_codec.encode(expenses),
            row_count=len(expenses),
        )

    def import_csv(self, text: str, replace: bool = False) -> ImportResult:
        """
        Import expenses from CSV text.

        With replace=False the rows are appended and ids already in the
        ledger are skipped. With replace=True the ledger becomes exactly
        the imported rows.
        """
        imported = csv_codec.decode(text)

        if replace:
            existing = []
        else:
            existing = self._store.load().expenses

        seen = {expense.id for expense in existing}
        new_expenses = []
        for expense in imported:
            if expense.id in seen:
                continue
            seen.add(expense.id)
            new_expenses.append(expense)

        expenses = existing + new_expenses
        save_result = self._store.save(expenses)
        self._check_save(save_result)

        skipped = len(imported) - len(new_expenses)
        self._activity.log_csv_imported(len(new_expenses), skipped, replace)

        return ImportResult(
            imported=len(new_expenses),
            skipped_duplicates=skipped,
            replaced=replace,
            expenses=expenses,
            save_result=save_result,
        )

    # -------------------------------------------------------------------------
    # Settings, stats and backups
    # -------------------------------------------------------------------------

    def settings(self) -> UserSettings:
        return self._store.load_settings()

    def update_settings(self, **changes) -> SaveResult:
        result = self._store.save_settings(changes)
        self._check_save(result)
        return result

    def storage_stats(self) -> StorageStats:
        return self._store.get_stats()

    def is_storage_available(self) -> bool:
        return self._store.is_available()

    def export_backup(self) -> LedgerBackup:
        return self._store.export_all()

    def import_backup(self, backup: Union[LedgerBackup, dict]) -> SaveResult:
        if not isinstance(backup, LedgerBackup):
            backup = LedgerBackup.model_validate(backup)
        result = self._store.import_all(backup)
        self._check_save(result)
        self._activity.log_backup_restored(len(backup.expenses), backup.settings is not None)
        return result

    # -------------------------------------------------------------------------
    # Spreadsheet mirror
    # -------------------------------------------------------------------------

    async def mirror(self, expenses: list[Expense]) -> bool:
        """Push expenses to the mirror. False when no mirror is configured."""
        if self._gateway is None:
            logger.info("mirror_skipped", reason="no_gateway")
            return False

        ok = await self._gateway.push_new(expenses)
        self._activity.log_sync(
            len(expenses) if ok else 0,
            [] if ok else ["Failed to append expenses to the mirror"],
        )
        return ok

    async def sync(self) -> SyncResult:
        """Push every local expense the mirror has not seen yet."""
        if self._gateway is None:
            return SyncResult(errors=["Sync gateway not configured"])

        result = await self._gateway.synchronize(self._store.load().expenses)
        self._activity.log_sync(result.synced, result.errors)
        return result


def create_ledger(
    settings: Optional[Settings] = None,
    use_sync: bool = True,
    on_save_error: Optional[Callable[[SaveResult], None]] = None,
) -> ExpenseLedger:
    """
    Factory function to create a ledger from configuration.

    Args:
        settings: Root settings; defaults to get_settings()
        use_sync: Whether to attach the Google Sheets mirror when it is
                  configured
        on_save_error: Called whenever a write is rejected

    Returns:
        A ready ExpenseLedger backed by JSON files in the data directory
    """
    settings = settings or get_settings()
    app_settings = settings.app
    storage_settings = settings.storage

    configure_logging(json_output=app_settings.log_json)

    backend = JsonFileBackend(
        storage_settings.data_dir,
        max_bytes=storage_settings.max_storage_bytes,
    )
    store = LocalRecordStore(backend, on_save_error=on_save_error)

    gateway = None
    if use_sync:
        sheets_settings = settings.google_sheets
        status = validate_config(sheets_settings)
        if status.is_valid:
            gateway = GoogleSheetsGateway(settings=sheets_settings)
        else:
            logger.info("sync_disabled", missing=status.missing_config)

    return ExpenseLedger(
        store=store,
        validator=ExpenseValidator(store, settings=app_settings),
        gateway=gateway,
        activity_logger=ActivityLogger(),
    )
