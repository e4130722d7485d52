"""Services package."""

from expense_ledger.services.storage import (
    DuplicateError,
    InMemoryBackend,
    JsonFileBackend,
    KeyValueBackend,
    LocalRecordStore,
    QuotaExceededError,
    RecordStoreInterface,
    StorageError,
    StorageUnavailableError,
)
from expense_ledger.services.sync import (
    GoogleSheetsClient,
    GoogleSheetsGateway,
    MirrorGateway,
    SyncError,
)

__all__ = [
    # Storage services
    "DuplicateError",
    "InMemoryBackend",
    "JsonFileBackend",
    "KeyValueBackend",
    "LocalRecordStore",
    "QuotaExceededError",
    "RecordStoreInterface",
    "StorageError",
    "StorageUnavailableError",
    # Sync services
    "GoogleSheetsClient",
    "GoogleSheetsGateway",
    "MirrorGateway",
    "SyncError",
]
