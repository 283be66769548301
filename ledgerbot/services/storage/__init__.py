"""
Storage Services Package

Provides the abstract ledger storage interface and its implementations:
an in-memory store for tests and development, and Google Sheets for
durable personal use.
"""

from ledgerbot.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageConnectionError,
    StorageError,
)
from ledgerbot.services.storage.memory import InMemoryLedgerStorage
from ledgerbot.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interface
    "LedgerStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "InMemoryLedgerStorage",
]
