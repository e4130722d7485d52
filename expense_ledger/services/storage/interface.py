"""
Abstract Storage Interface

DESIGN DECISION: We define abstract interfaces for storage operations.
This allows us to:
1. Swap the JSON file backend for an embedded database or remote API later
2. Use in-memory storage for testing
3. Keep ledger operations and the CSV codec decoupled from persistence

Two layers:
- KeyValueBackend: raw string values under opaque keys (the medium)
- RecordStoreInterface: the expense collection and user settings on top
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from expense_ledger.models.expense import (
    Expense,
    LedgerBackup,
    LedgerSnapshot,
    SaveResult,
    StorageStats,
    UserSettings,
)


class KeyValueBackend(ABC):
    """
    A durable string key-value medium scoped to one local profile.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored text, or None if the key was never written

        Raises:
            StorageError: If the medium cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Replace the value stored under a key in a single write.

        Raises:
            QuotaExceededError: If the value does not fit
            StorageError: If the medium rejects the write
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass


class RecordStoreInterface(ABC):
    """
    Abstract interface for expense and settings persistence.

    Every mutation is a full load-modify-save of the ledger snapshot.
    Implementations must not raise from load() or save().
    """

    @abstractmethod
    def load(self) -> LedgerSnapshot:
        """
        Load the ledger snapshot.

        Returns:
            The stored snapshot, or an empty one if nothing was saved
            or the stored data could not be parsed
        """
        pass

    @abstractmethod
    def save(self, expenses: list[Expense]) -> SaveResult:
        """
        Replace the whole persisted collection.

        Returns:
            A SaveResult; failures are reported here, never raised
        """
        pass

    @abstractmethod
    def add(self, expense: Expense) -> list[Expense]:
        """Append an expense and return the updated collection."""
        pass

    @abstractmethod
    def update(self, expense_id: str, changes: Mapping[str, Any]) -> list[Expense]:
        """
        Replace fields of the matching expense.

        Returns the updated collection; a missing id is a no-op.
        """
        pass

    @abstractmethod
    def delete(self, expense_id: str) -> list[Expense]:
        """
        Remove the matching expense.

        Returns the updated collection; a missing id is a no-op.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove the persisted ledger snapshot entirely."""
        pass

    @abstractmethod
    def load_settings(self) -> UserSettings:
        """Load settings with defaults applied for absent fields."""
        pass

    @abstractmethod
    def save_settings(self, changes: Mapping[str, Any]) -> SaveResult:
        """Merge changes over the current settings and persist them."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Probe whether the medium is writable. Must not raise."""
        pass

    @abstractmethod
    def get_stats(self) -> StorageStats:
        """Summarize the stored ledger."""
        pass

    @abstractmethod
    def export_all(self) -> LedgerBackup:
        """Export expenses and settings together."""
        pass

    @abstractmethod
    def import_all(self, backup: LedgerBackup) -> SaveResult:
        """Restore expenses and, when present, settings from a backup."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class QuotaExceededError(StorageError):
    """The value does not fit in the storage medium."""
    pass


class StorageUnavailableError(StorageError):
    """The storage medium cannot be read or written at all."""
    pass
