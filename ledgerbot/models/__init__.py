"""
Data Models Package

This package contains all Pydantic models used by the ledger bot.
Everything passed between the interpreter and storage conforms to these schemas.
"""

from ledgerbot.models.ledger import (
    Category,
    CategoryAggregate,
    CategoryListing,
    CommandIntent,
    EntryType,
    MonthlySummary,
    ParsedCommand,
    Transaction,
    TransactionView,
    as_utc,
    utc_now,
)

__all__ = [
    "Category",
    "CategoryAggregate",
    "CategoryListing",
    "CommandIntent",
    "EntryType",
    "MonthlySummary",
    "ParsedCommand",
    "Transaction",
    "TransactionView",
    "as_utc",
    "utc_now",
]
