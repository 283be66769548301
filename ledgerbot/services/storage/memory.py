"""
In-Memory Storage Implementation

Used by the test suite and as the default development backend.

Gives the same guarantees a relational schema would:
- UNIQUE(user_id, name) on categories, enforced inside one locked step
- ON DELETE CASCADE from categories to their transactions
- Every mutating call is atomic with respect to other calls
"""

import asyncio
import itertools
from datetime import datetime
from typing import Optional

from ledgerbot.models import (
    Category,
    CategoryAggregate,
    EntryType,
    Transaction,
    TransactionView,
    as_utc,
    utc_now,
)
from ledgerbot.services.storage.interface import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """
    Dict-backed ledger storage.

    State lives only as long as the instance; nothing is written to disk.
    """

    def __init__(self):
        self._categories: dict[int, Category] = {}
        self._transactions: dict[int, Transaction] = {}
        self._category_ids = itertools.count(1)
        self._transaction_ids = itertools.count(1)
        self._lock = asyncio.Lock()

    def _find_category(self, user_id: str, name: str) -> Optional[Category]:
        for category in self._categories.values():
            if category.user_id == user_id and category.name == name:
                return category
        return None

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def category_exists(
        self,
        user_id: str,
        name: str,
        entry_type: Optional[EntryType] = None,
    ) -> bool:
        return self._find_category(user_id, name) is not None

    async def add_category(
        self,
        user_id: str,
        name: str,
        entry_type: EntryType,
    ) -> Category:
        async with self._lock:
            if self._find_category(user_id, name) is not None:
                raise DuplicateError(f"Category already exists: {name}")

            category = Category(
                id=next(self._category_ids),
                user_id=user_id,
                name=name,
                type=entry_type,
            )
            self._categories[category.id] = category
            return category

    async def rename_category(
        self,
        user_id: str,
        old_name: str,
        new_name: str,
    ) -> int:
        async with self._lock:
            category = self._find_category(user_id, old_name)
            if category is None:
                return 0

            if new_name != old_name and self._find_category(user_id, new_name) is not None:
                raise DuplicateError(f"Category already exists: {new_name}")

            self._categories[category.id] = category.model_copy(update={"name": new_name})
            return 1

    async def delete_category(self, user_id: str, name: str) -> int:
        async with self._lock:
            category = self._find_category(user_id, name)
            if category is None:
                return 0

            del self._categories[category.id]
            orphaned = [
                txn_id
                for txn_id, txn in self._transactions.items()
                if txn.category_id == category.id
            ]
            for txn_id in orphaned:
                del self._transactions[txn_id]
            return 1

    async def list_categories_by_type(
        self,
        user_id: str,
    ) -> dict[EntryType, list[str]]:
        grouped: dict[EntryType, list[str]] = {}
        owned = sorted(
            (c for c in self._categories.values() if c.user_id == user_id),
            key=lambda c: (c.type.value, c.name),
        )
        for category in owned:
            grouped.setdefault(category.type, []).append(category.name)
        return grouped

    async def get_category_id_and_type(
        self,
        user_id: str,
        name: str,
    ) -> Optional[tuple[int, EntryType]]:
        category = self._find_category(user_id, name)
        if category is None:
            return None
        return category.id, category.type

    async def get_categories_info(self, user_id: str) -> dict[str, EntryType]:
        return {
            c.name: c.type
            for c in self._categories.values()
            if c.user_id == user_id
        }

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        user_id: str,
        category_id: int,
        entry_type: EntryType,
        amount: int,
        created_at: Optional[datetime] = None,
    ) -> Transaction:
        async with self._lock:
            if category_id not in self._categories:
                raise NotFoundError(f"Category not found: {category_id}")

            transaction = Transaction(
                id=next(self._transaction_ids),
                user_id=user_id,
                category_id=category_id,
                type=entry_type,
                amount=amount,
                created_at=created_at or utc_now(),
            )
            self._transactions[transaction.id] = transaction
            return transaction

    async def find_transaction_id(
        self,
        user_id: str,
        category_name: str,
        amount: int,
    ) -> Optional[int]:
        category = self._find_category(user_id, category_name)
        if category is None:
            return None

        matches = [
            txn
            for txn in self._transactions.values()
            if txn.user_id == user_id
            and txn.category_id == category.id
            and txn.amount == amount
        ]
        if not matches:
            return None

        latest = max(matches, key=lambda t: (t.created_at, t.id))
        return latest.id

    async def update_transaction_amount(
        self,
        transaction_id: int,
        new_amount: int,
    ) -> int:
        async with self._lock:
            transaction = self._transactions.get(transaction_id)
            if transaction is None:
                return 0
            self._transactions[transaction_id] = transaction.model_copy(
                update={"amount": new_amount}
            )
            return 1

    async def delete_transaction(self, transaction_id: int) -> int:
        async with self._lock:
            if self._transactions.pop(transaction_id, None) is None:
                return 0
            return 1

    async def monthly_aggregate(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> list[CategoryAggregate]:
        start, end = as_utc(start), as_utc(end)
        totals: dict[tuple[str, EntryType], int] = {}

        for txn in self._transactions.values():
            if txn.user_id != user_id:
                continue
            if not start <= txn.created_at < end:
                continue
            # Inner join: transactions of a vanished category are skipped
            category = self._categories.get(txn.category_id)
            if category is None:
                continue
            key = (category.name, txn.type)
            totals[key] = totals.get(key, 0) + txn.amount

        return [
            CategoryAggregate(type=entry_type, category_name=name, total=total)
            for (name, entry_type), total in sorted(
                totals.items(), key=lambda item: (item[0][0], item[0][1].value)
            )
        ]

    async def list_transactions(
        self,
        user_id: str,
        limit: int = 20,
    ) -> list[TransactionView]:
        owned = sorted(
            (t for t in self._transactions.values() if t.user_id == user_id),
            key=lambda t: (t.created_at, t.id),
            reverse=True,
        )

        views = []
        for txn in owned[:limit]:
            category = self._categories.get(txn.category_id)
            views.append(TransactionView(
                id=txn.id,
                category_name=category.name if category else None,
                type=txn.type,
                amount=txn.amount,
                created_at=txn.created_at,
            ))
        return views
