"""Tests for the in-memory ledger storage."""

import pytest
from datetime import datetime, timezone

from ledgerbot.models import EntryType
from ledgerbot.services.storage import DuplicateError, NotFoundError

UTC = timezone.utc


class TestCategories:
    """Tests for category storage."""

    @pytest.mark.asyncio
    async def test_ids_are_assigned(self, storage):
        """Test that categories get increasing ids."""
        first = await storage.add_category("u1", "food", EntryType.EXPENSE)
        second = await storage.add_category("u1", "rent", EntryType.EXPENSE)
        assert (first.id, second.id) == (1, 2)

    @pytest.mark.asyncio
    async def test_duplicate_raises(self, storage):
        """Test insert-if-absent on (user, name)."""
        await storage.add_category("u1", "food", EntryType.EXPENSE)
        with pytest.raises(DuplicateError):
            await storage.add_category("u1", "food", EntryType.INCOME)

    @pytest.mark.asyncio
    async def test_rename_to_same_name(self, storage):
        """Test that renaming a category to its own name is not a conflict."""
        await storage.add_category("u1", "food", EntryType.EXPENSE)
        assert await storage.rename_category("u1", "food", "food") == 1

    @pytest.mark.asyncio
    async def test_list_by_type_sorted(self, storage):
        """Test grouping by type with names in sorted order."""
        await storage.add_category("u1", "rent", EntryType.EXPENSE)
        await storage.add_category("u1", "food", EntryType.EXPENSE)
        await storage.add_category("u1", "salary", EntryType.INCOME)
        await storage.add_category("u2", "other", EntryType.INCOME)

        grouped = await storage.list_categories_by_type("u1")

        assert grouped == {
            EntryType.EXPENSE: ["food", "rent"],
            EntryType.INCOME: ["salary"],
        }

    @pytest.mark.asyncio
    async def test_categories_info(self, storage):
        """Test the name to type mapping."""
        await storage.add_category("u1", "salary", EntryType.INCOME)
        await storage.add_category("u1", "food", EntryType.EXPENSE)
        assert await storage.get_categories_info("u1") == {
            "salary": EntryType.INCOME,
            "food": EntryType.EXPENSE,
        }

    @pytest.mark.asyncio
    async def test_delete_only_cascades_own_transactions(self, storage):
        """Test that deleting a category leaves other categories' records."""
        food = await storage.add_category("u1", "food", EntryType.EXPENSE)
        rent = await storage.add_category("u1", "rent", EntryType.EXPENSE)
        await storage.add_transaction("u1", food.id, EntryType.EXPENSE, 10)
        await storage.add_transaction("u1", rent.id, EntryType.EXPENSE, 900)

        assert await storage.delete_category("u1", "food") == 1

        [remaining] = await storage.list_transactions("u1")
        assert remaining.category_name == "rent"


class TestTransactions:
    """Tests for transaction storage."""

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, storage):
        """Test that a transaction needs an existing category."""
        with pytest.raises(NotFoundError):
            await storage.add_transaction("u1", 42, EntryType.EXPENSE, 10)

    @pytest.mark.asyncio
    async def test_find_prefers_latest_timestamp(self, storage):
        """Test that the most recent created_at wins over the higher id."""
        food = await storage.add_category("u1", "food", EntryType.EXPENSE)
        newer = await storage.add_transaction(
            "u1", food.id, EntryType.EXPENSE, 100, created_at=datetime(2025, 5, 2, tzinfo=UTC)
        )
        await storage.add_transaction(
            "u1", food.id, EntryType.EXPENSE, 100, created_at=datetime(2025, 5, 1, tzinfo=UTC)
        )
        assert await storage.find_transaction_id("u1", "food", 100) == newer.id

    @pytest.mark.asyncio
    async def test_find_scoped_to_user(self, storage):
        """Test that another user's category is not matched."""
        food = await storage.add_category("u2", "food", EntryType.EXPENSE)
        await storage.add_transaction("u2", food.id, EntryType.EXPENSE, 100)
        assert await storage.find_transaction_id("u1", "food", 100) is None

    @pytest.mark.asyncio
    async def test_update_and_delete_missing(self, storage):
        """Test zero affected rows for unknown ids."""
        assert await storage.update_transaction_amount(99, 1) == 0
        assert await storage.delete_transaction(99) == 0

    @pytest.mark.asyncio
    async def test_list_newest_first_with_limit(self, storage):
        """Test ordering and the limit of the recent view."""
        food = await storage.add_category("u1", "food", EntryType.EXPENSE)
        for day in (1, 3, 2):
            await storage.add_transaction(
                "u1", food.id, EntryType.EXPENSE, day,
                created_at=datetime(2025, 5, day, tzinfo=UTC),
            )

        views = await storage.list_transactions("u1", limit=2)

        assert [v.amount for v in views] == [3, 2]
