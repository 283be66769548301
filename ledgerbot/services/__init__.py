"""Services package."""

from ledgerbot.services.storage import (
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
]
