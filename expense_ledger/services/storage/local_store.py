"""
Local Record Store

DESIGN DECISION: The ledger is persisted as one JSON snapshot under a
single key and replaced wholesale on every mutation. Settings live under
a second, independent key.

TRADEOFFS:
- A corrupt snapshot reads back as an empty ledger (logged, not raised),
  so a bad file can never stop the caller from working
- A rejected write is reported through SaveResult and the optional
  on_save_error callback instead of an exception
- Two processes sharing a data directory overwrite each other
  (last write wins); the store is meant for one local profile
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

import structlog
from pydantic import ValidationError

from expense_ledger.models.expense import (
    LEDGER_SCHEMA_VERSION,
    Expense,
    LedgerBackup,
    LedgerSnapshot,
    SaveResult,
    StorageStats,
    UserSettings,
)
from expense_ledger.services.storage.interface import (
    KeyValueBackend,
    RecordStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

STORAGE_KEY = "expense-tracker-data"
SETTINGS_KEY = "expense-tracker-settings"
PROBE_KEY = "__storage_test__"


class DuplicateError(StorageError):
    """Attempted to add an expense whose id is already stored."""
    pass


class LocalRecordStore(RecordStoreInterface):
    """
    Record store over a KeyValueBackend.

    Args:
        backend: The medium holding the snapshot and settings
        on_save_error: Called with the failed SaveResult whenever a
            write is rejected
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        on_save_error: Optional[Callable[[SaveResult], None]] = None,
    ):
        self._backend = backend
        self._on_save_error = on_save_error
        self.last_save_result: Optional[SaveResult] = None

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    # -------------------------------------------------------------------------
    # Low-level read/write
    # -------------------------------------------------------------------------

    def _read(self, key: str) -> Optional[str]:
        try:
            return self._backend.get(key)
        except StorageError as e:
            logger.error("storage_read_failed", key=key, error=str(e))
            return None

    def _write(self, key: str, text: str) -> SaveResult:
        try:
            self._backend.set(key, text)
        except StorageError as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            result = SaveResult(success=False, reason=str(e))
            if self._on_save_error is not None:
                self._on_save_error(result)
            return result
        return SaveResult(success=True, saved_at=datetime.now(timezone.utc))

    # -------------------------------------------------------------------------
    # Ledger snapshot
    # -------------------------------------------------------------------------

    def load(self) -> LedgerSnapshot:
        """Load the snapshot; absent or unparseable data is an empty ledger."""
        raw = self._read(STORAGE_KEY)
        if not raw:
            return LedgerSnapshot()

        try:
            return LedgerSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.error(
                "ledger_load_failed",
                error_count=e.error_count(),
                error=str(e),
            )
            return LedgerSnapshot()

    def load_expenses(self) -> list[Expense]:
        return self.load().expenses

    def save(self, expenses: list[Expense]) -> SaveResult:
        """Persist the whole collection, stamping time and schema version."""
        snapshot = LedgerSnapshot(
            expenses=list(expenses),
            last_updated=datetime.now(timezone.utc),
            version=LEDGER_SCHEMA_VERSION,
        )
        result = self._write(STORAGE_KEY, snapshot.model_dump_json(by_alias=True))
        self.last_save_result = result
        return result

    def add(self, expense: Expense) -> list[Expense]:
        """
        Append an expense.

        Raises:
            DuplicateError: If an expense with the same id is stored
        """
        expenses = self.load_expenses()
        if any(existing.id == expense.id for existing in expenses):
            raise DuplicateError(f"Expense already stored: {expense.id}")

        expenses.append(expense)
        self.save(expenses)
        return expenses

    def update(self, expense_id: str, changes: Mapping[str, Any]) -> list[Expense]:
        """
        Replace fields of one expense. The id itself cannot be changed.

        Raises:
            pydantic.ValidationError: If the changed fields are invalid
        """
        expenses = self.load_expenses()
        updates = {
            key: value
            for key, value in changes.items()
            if key in Expense.model_fields and key != "id"
        }

        for idx, expense in enumerate(expenses):
            if expense.id == expense_id:
                expenses[idx] = Expense.model_validate(
                    {**expense.model_dump(), **updates}
                )
                self.save(expenses)
                return expenses

        logger.info("expense_update_skipped", expense_id=expense_id, reason="not_found")
        return expenses

    def delete(self, expense_id: str) -> list[Expense]:
        """Remove one expense; unknown ids leave the ledger untouched."""
        expenses = self.load_expenses()
        remaining = [expense for expense in expenses if expense.id != expense_id]

        if len(remaining) == len(expenses):
            logger.info("expense_delete_skipped", expense_id=expense_id, reason="not_found")
            return expenses

        self.save(remaining)
        return remaining

    def clear(self) -> None:
        try:
            self._backend.remove(STORAGE_KEY)
        except StorageError as e:
            logger.error("ledger_clear_failed", error=str(e))

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def load_settings(self) -> UserSettings:
        """
        Load settings. Stored values override defaults field by field;
        a stored value that fails validation falls back to its default.
        """
        raw = self._read(SETTINGS_KEY)
        if not raw:
            return UserSettings()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("settings_load_failed", error=str(e))
            return UserSettings()

        if not isinstance(data, dict):
            logger.error("settings_load_failed", error="stored settings are not an object")
            return UserSettings()

        values = UserSettings.normalize_keys(data)
        try:
            return UserSettings.model_validate(values)
        except ValidationError as e:
            bad_fields = set(UserSettings.normalize_keys(
                {str(err["loc"][0]): None for err in e.errors() if err["loc"]}
            ))
            logger.warning("settings_fields_ignored", fields=sorted(bad_fields))
            return UserSettings.model_validate(
                {k: v for k, v in values.items() if k not in bad_fields}
            )

    def save_settings(self, changes: Mapping[str, Any]) -> SaveResult:
        """
        Merge changes over the current settings and persist the result.

        Raises:
            pydantic.ValidationError: If a changed value is invalid
        """
        updated = self.load_settings().merge(changes)
        return self._write(SETTINGS_KEY, updated.model_dump_json(by_alias=True))

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def is_available(self) -> bool:
        """Write and remove a probe value."""
        try:
            self._backend.set(PROBE_KEY, PROBE_KEY)
            self._backend.remove(PROBE_KEY)
            return True
        except (StorageError, OSError, ValueError) as e:
            logger.warning("storage_unavailable", error=str(e))
            return False

    def get_stats(self) -> StorageStats:
        raw = self._read(STORAGE_KEY)
        snapshot = self.load()
        return StorageStats(
            total_expenses=len(snapshot.expenses),
            total_amount=sum(expense.amount for expense in snapshot.expenses),
            last_updated=snapshot.last_updated,
            storage_size=len(raw.encode("utf-8")) if raw else 0,
        )

    def export_all(self) -> LedgerBackup:
        return LedgerBackup(
            expenses=self.load_expenses(),
            settings=self.load_settings(),
        )

    def import_all(self, backup: LedgerBackup) -> SaveResult:
        """
        Replace the ledger with the backup's expenses and merge its
        settings. Repeated ids keep their first occurrence.
        """
        seen = set()
        expenses = []
        for expense in backup.expenses:
            if expense.id in seen:
                logger.warning("backup_duplicate_skipped", expense_id=expense.id)
                continue
            seen.add(expense.id)
            expenses.append(expense)

        result = self.save(expenses)
        if backup.settings is not None:
            settings_result = self.save_settings(backup.settings.model_dump())
            if result.success and not settings_result.success:
                return settings_result
        return result
