"""
Storage Services Package

Provides the abstract record-store interface and its local implementation.
The key-value medium is swappable: in-memory for tests, JSON files on disk
for real use.
"""

from expense_ledger.services.storage.interface import (
    KeyValueBackend,
    QuotaExceededError,
    RecordStoreInterface,
    StorageError,
    StorageUnavailableError,
)
from expense_ledger.services.storage.backends import (
    InMemoryBackend,
    JsonFileBackend,
)
from expense_ledger.services.storage.local_store import (
    SETTINGS_KEY,
    STORAGE_KEY,
    DuplicateError,
    LocalRecordStore,
)

__all__ = [
    # Interfaces
    "KeyValueBackend",
    "RecordStoreInterface",
    # Exceptions
    "DuplicateError",
    "QuotaExceededError",
    "StorageError",
    "StorageUnavailableError",
    # Implementations
    "InMemoryBackend",
    "JsonFileBackend",
    "LocalRecordStore",
    "SETTINGS_KEY",
    "STORAGE_KEY",
]
