"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Inject the store into the interpreter instead of sharing a global handle
2. Use in-memory storage for testing
3. Swap Google Sheets for a real database later
4. Keep business logic decoupled from storage implementation

The interface is intentionally narrow - just the operations the chat
commands need. Concurrency guarantees belong to the implementation; the
interpreter never locks anything itself.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ledgerbot.models import (
    Category,
    CategoryAggregate,
    EntryType,
    Transaction,
    TransactionView,
)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for category and transaction storage.

    Any storage implementation (in-memory, Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    @abstractmethod
    async def category_exists(
        self,
        user_id: str,
        name: str,
        entry_type: Optional[EntryType] = None,
    ) -> bool:
        """
        Check whether the user already has a category with this name.

        Existence is keyed on (user_id, name) only; entry_type is accepted
        for callers that know it but never narrows the match.
        """
        pass

    @abstractmethod
    async def add_category(
        self,
        user_id: str,
        name: str,
        entry_type: EntryType,
    ) -> Category:
        """
        Insert a category if (user_id, name) is not taken.

        The check and the insert are a single atomic step.

        Returns:
            The stored category with its assigned id

        Raises:
            DuplicateError: If the user already has a category with this name
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def rename_category(
        self,
        user_id: str,
        old_name: str,
        new_name: str,
    ) -> int:
        """
        Rename a category in place, keeping its id and type.

        Returns:
            Number of rows affected (0 if the category does not exist)

        Raises:
            DuplicateError: If new_name is already used by another category
        """
        pass

    @abstractmethod
    async def delete_category(self, user_id: str, name: str) -> int:
        """
        Delete a category and every transaction recorded under it.

        Returns:
            Number of category rows deleted (0 or 1)
        """
        pass

    @abstractmethod
    async def list_categories_by_type(
        self,
        user_id: str,
    ) -> dict[EntryType, list[str]]:
        """
        List category names grouped by type.

        Types with no categories may be absent from the mapping.
        """
        pass

    @abstractmethod
    async def get_category_id_and_type(
        self,
        user_id: str,
        name: str,
    ) -> Optional[tuple[int, EntryType]]:
        """
        Resolve a category name.

        Returns:
            (category_id, entry_type), or None if not found
        """
        pass

    @abstractmethod
    async def get_categories_info(self, user_id: str) -> dict[str, EntryType]:
        """Map every category name of the user to its type."""
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def add_transaction(
        self,
        user_id: str,
        category_id: int,
        entry_type: EntryType,
        amount: int,
        created_at: Optional[datetime] = None,
    ) -> Transaction:
        """
        Append a transaction.

        Args:
            user_id: Owner of the transaction
            category_id: Category it is recorded under
            entry_type: Type copied from the category at this instant
            amount: Signed integer amount
            created_at: Timestamp to record; defaults to now (UTC)

        Returns:
            The stored transaction with its assigned id
        """
        pass

    @abstractmethod
    async def find_transaction_id(
        self,
        user_id: str,
        category_name: str,
        amount: int,
    ) -> Optional[int]:
        """
        Find a transaction by category name and exact amount.

        When several match, the most recent one wins: latest created_at,
        ties broken by the highest id.

        Returns:
            The transaction id, or None if nothing matches
        """
        pass

    @abstractmethod
    async def update_transaction_amount(
        self,
        transaction_id: int,
        new_amount: int,
    ) -> int:
        """
        Set a transaction's amount.

        Returns:
            Number of rows affected (0 if it no longer exists)
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: int) -> int:
        """
        Delete a transaction.

        Returns:
            Number of rows affected (0 if it no longer exists)
        """
        pass

    @abstractmethod
    async def monthly_aggregate(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> list[CategoryAggregate]:
        """
        Sum amounts per (transaction type, category name).

        Only transactions with start <= created_at < end are included.
        Groups are returned ordered by category name, then type.
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        user_id: str,
        limit: int = 20,
    ) -> list[TransactionView]:
        """
        List the user's most recent transactions, newest first.

        Args:
            user_id: Owner of the transactions
            limit: Maximum number of results
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
