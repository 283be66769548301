"""
Tests for the Google Sheets ledger storage

The gspread worksheets are replaced by in-process fakes that keep rows as
lists of strings, the way the Sheets API returns them. No network access.
"""

import pytest
from datetime import datetime, timezone

import gspread
from gspread.utils import a1_to_rowcol

from ledgerbot.config import GoogleSheetsSettings
from ledgerbot.models import EntryType
from ledgerbot.services.storage import (
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    NotFoundError,
    StorageError,
)
from ledgerbot.services.storage.google_sheets import (
    CATEGORY_COLUMNS,
    TRANSACTION_COLUMNS,
)

UTC = timezone.utc


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage."""

    def __init__(self, header: list[str]):
        self.rows = [list(header)]
        self.input_options = []

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.input_options.append(value_input_option)
        self.rows.append([str(v) for v in values])

    def update(self, range_name=None, values=None, value_input_option=None):
        self.input_options.append(value_input_option)
        row, col = a1_to_rowcol(range_name)
        self.rows[row - 1][col - 1] = str(values[0][0])

    def delete_rows(self, start_index, end_index=None):
        end_index = end_index or start_index
        del self.rows[start_index - 1:end_index]


class BrokenWorksheet(FakeWorksheet):
    """A worksheet whose reads fail with a non-API error."""

    def get_all_values(self):
        raise RuntimeError("socket closed")


class FakeSheetsClient:
    """Stands in for GoogleSheetsClient with two fake worksheets."""

    def __init__(self):
        self.categories = FakeWorksheet(CATEGORY_COLUMNS)
        self.transactions = FakeWorksheet(TRANSACTION_COLUMNS)

    def get_categories_sheet(self):
        return self.categories

    def get_transactions_sheet(self):
        return self.transactions


class FakeSpreadsheet:
    """Just enough of gspread.Spreadsheet for GoogleSheetsClient."""

    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        if title not in self.sheets:
            raise gspread.WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        sheet = FakeWorksheet([])
        sheet.rows = []
        self.sheets[title] = sheet
        return sheet


@pytest.fixture
def client():
    return FakeSheetsClient()


@pytest.fixture
def sheets_storage(client):
    return GoogleSheetsLedgerStorage(client)


class TestSheetRows:
    """Tests for how records are laid out in the sheets."""

    @pytest.mark.asyncio
    async def test_category_row(self, sheets_storage, client):
        """Test that a category is appended as one string row."""
        await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        assert client.categories.rows[1] == ["1", "u1", "food", "expense"]

    @pytest.mark.asyncio
    async def test_transaction_row(self, sheets_storage, client):
        """Test that a transaction stores the type label and ISO timestamp."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        await sheets_storage.add_transaction(
            "u1", food.id, EntryType.EXPENSE, 120,
            created_at=datetime(2025, 5, 15, 12, 0, tzinfo=UTC),
        )
        assert client.transactions.rows[1] == [
            "1", "u1", "1", "expense", "120", "2025-05-15T12:00:00+00:00",
        ]

    @pytest.mark.asyncio
    async def test_malformed_rows_skipped(self, sheets_storage, client):
        """Test that hand-edited junk rows are ignored."""
        client.categories.rows.append(["x", "u1", "broken", "expense"])
        client.categories.rows.append(["", "", "", ""])
        client.categories.rows.append(["7", "u1", "food", "spending"])
        await sheets_storage.add_category("u1", "rent", EntryType.EXPENSE)

        assert await sheets_storage.get_categories_info("u1") == {"rent": EntryType.EXPENSE}


class TestSheetsCategories:
    """Tests for category operations on Sheets."""

    @pytest.mark.asyncio
    async def test_duplicate_raises(self, sheets_storage):
        """Test insert-if-absent on (user, name)."""
        await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        with pytest.raises(DuplicateError):
            await sheets_storage.add_category("u1", "food", EntryType.INCOME)

    @pytest.mark.asyncio
    async def test_ids_continue_from_max(self, sheets_storage, client):
        """Test that new ids follow the highest id in the sheet."""
        client.categories.rows.append(["41", "u9", "old", "income"])
        category = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        assert category.id == 42

    @pytest.mark.asyncio
    async def test_rename_updates_name_cell(self, sheets_storage, client):
        """Test that a rename only rewrites the name column."""
        await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)

        assert await sheets_storage.rename_category("u1", "food", "meals") == 1
        assert client.categories.rows[1] == ["1", "u1", "meals", "expense"]

    @pytest.mark.asyncio
    async def test_rename_writes_raw_value(self, sheets_storage, client):
        """Test that a formula-like name is stored verbatim, not evaluated."""
        await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)

        await sheets_storage.rename_category("u1", "food", "=1+1")

        assert client.categories.input_options == ["RAW", "RAW"]
        assert client.categories.rows[1][2] == "=1+1"
        assert await sheets_storage.get_category_id_and_type("u1", "=1+1") == (1, EntryType.EXPENSE)

    @pytest.mark.asyncio
    async def test_rename_missing_and_conflict(self, sheets_storage):
        """Test zero rows for a missing category and a duplicate for a taken name."""
        await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        await sheets_storage.add_category("u1", "rent", EntryType.EXPENSE)

        assert await sheets_storage.rename_category("u1", "nope", "x") == 0
        with pytest.raises(DuplicateError):
            await sheets_storage.rename_category("u1", "food", "rent")

    @pytest.mark.asyncio
    async def test_delete_cascades(self, sheets_storage, client):
        """Test that the category's transaction rows are removed too."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        rent = await sheets_storage.add_category("u1", "rent", EntryType.EXPENSE)
        await sheets_storage.add_transaction("u1", food.id, EntryType.EXPENSE, 1)
        await sheets_storage.add_transaction("u1", rent.id, EntryType.EXPENSE, 2)
        await sheets_storage.add_transaction("u1", food.id, EntryType.EXPENSE, 3)

        assert await sheets_storage.delete_category("u1", "food") == 1

        assert [row[2] for row in client.categories.rows[1:]] == ["rent"]
        assert [row[4] for row in client.transactions.rows[1:]] == ["2"]

    @pytest.mark.asyncio
    async def test_list_by_type(self, sheets_storage):
        """Test grouping by type with sorted names."""
        await sheets_storage.add_category("u1", "rent", EntryType.EXPENSE)
        await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        await sheets_storage.add_category("u1", "salary", EntryType.INCOME)

        assert await sheets_storage.list_categories_by_type("u1") == {
            EntryType.EXPENSE: ["food", "rent"],
            EntryType.INCOME: ["salary"],
        }


class TestSheetsTransactions:
    """Tests for transaction operations on Sheets."""

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, sheets_storage):
        """Test that a transaction needs an existing category."""
        with pytest.raises(NotFoundError):
            await sheets_storage.add_transaction("u1", 5, EntryType.EXPENSE, 1)

    @pytest.mark.asyncio
    async def test_update_then_find(self, sheets_storage, client):
        """Test that after 150 -> 200 only the new amount is found."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        txn = await sheets_storage.add_transaction("u1", food.id, EntryType.EXPENSE, 150)

        assert await sheets_storage.update_transaction_amount(txn.id, 200) == 1
        assert await sheets_storage.find_transaction_id("u1", "food", 200) == txn.id
        assert await sheets_storage.find_transaction_id("u1", "food", 150) is None
        assert client.transactions.rows[1][4] == "200"

    @pytest.mark.asyncio
    async def test_amount_update_writes_raw_value(self, sheets_storage, client):
        """Test that a large amount is written as RAW text and still reads back."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        txn = await sheets_storage.add_transaction("u1", food.id, EntryType.EXPENSE, 1)

        await sheets_storage.update_transaction_amount(txn.id, 10_000_000_000_000_000)

        assert client.transactions.input_options == ["RAW", "RAW"]
        [view] = await sheets_storage.list_transactions("u1")
        assert view.amount == 10_000_000_000_000_000

    @pytest.mark.asyncio
    async def test_find_most_recent(self, sheets_storage):
        """Test that equal timestamps fall back to the highest id."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        when = datetime(2025, 5, 1, tzinfo=UTC)
        await sheets_storage.add_transaction("u1", food.id, EntryType.EXPENSE, 100, created_at=when)
        second = await sheets_storage.add_transaction(
            "u1", food.id, EntryType.EXPENSE, 100, created_at=when
        )
        assert await sheets_storage.find_transaction_id("u1", "food", 100) == second.id

    @pytest.mark.asyncio
    async def test_delete_twice(self, sheets_storage):
        """Test that the second delete affects nothing."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        txn = await sheets_storage.add_transaction("u1", food.id, EntryType.EXPENSE, 150)

        assert await sheets_storage.delete_transaction(txn.id) == 1
        assert await sheets_storage.delete_transaction(txn.id) == 0

    @pytest.mark.asyncio
    async def test_monthly_aggregate_window(self, sheets_storage):
        """Test per-(category, type) sums inside the half-open window."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        salary = await sheets_storage.add_category("u1", "salary", EntryType.INCOME)
        for amount, when in [
            (10, datetime(2025, 5, 1, tzinfo=UTC)),
            (20, datetime(2025, 5, 31, 23, 59, tzinfo=UTC)),
            (40, datetime(2025, 6, 1, tzinfo=UTC)),
        ]:
            await sheets_storage.add_transaction("u1", food.id, EntryType.EXPENSE, amount, created_at=when)
        await sheets_storage.add_transaction(
            "u1", salary.id, EntryType.INCOME, 500, created_at=datetime(2025, 5, 5, tzinfo=UTC)
        )

        groups = await sheets_storage.monthly_aggregate(
            "u1", datetime(2025, 5, 1, tzinfo=UTC), datetime(2025, 6, 1, tzinfo=UTC)
        )

        assert [(g.category_name, g.type, g.total) for g in groups] == [
            ("food", EntryType.EXPENSE, 30),
            ("salary", EntryType.INCOME, 500),
        ]

    @pytest.mark.asyncio
    async def test_list_transactions(self, sheets_storage):
        """Test the recent view joins category names, newest first."""
        food = await sheets_storage.add_category("u1", "food", EntryType.EXPENSE)
        await sheets_storage.add_transaction(
            "u1", food.id, EntryType.EXPENSE, 1, created_at=datetime(2025, 5, 1, tzinfo=UTC)
        )
        await sheets_storage.add_transaction(
            "u1", food.id, EntryType.EXPENSE, 2, created_at=datetime(2025, 5, 2, tzinfo=UTC)
        )

        views = await sheets_storage.list_transactions("u1")

        assert [(v.category_name, v.amount) for v in views] == [("food", 2), ("food", 1)]


class TestSheetsFailures:
    """Tests for error wrapping."""

    @pytest.mark.asyncio
    async def test_read_failure_wrapped(self, client):
        """Test that a broken sheet surfaces as StorageError."""
        client.categories = BrokenWorksheet(CATEGORY_COLUMNS)
        storage = GoogleSheetsLedgerStorage(client)

        with pytest.raises(StorageError):
            await storage.add_category("u1", "food", EntryType.EXPENSE)
        with pytest.raises(StorageError):
            await storage.get_categories_info("u1")


class TestGoogleSheetsClient:
    """Tests for worksheet lookup and creation."""

    @pytest.fixture
    def sheets_client(self, tmp_path):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        settings = GoogleSheetsSettings(
            credentials_path=str(credentials),
            spreadsheet_id="sheet-id",
            _env_file=None,
        )
        sheets_client = GoogleSheetsClient(settings)
        sheets_client._spreadsheet = FakeSpreadsheet()
        return sheets_client

    def test_missing_sheet_created_with_header(self, sheets_client):
        """Test that a missing worksheet is created with its header row."""
        sheet = sheets_client.get_transactions_sheet()
        assert sheet.rows == [TRANSACTION_COLUMNS]

    def test_existing_sheet_reused(self, sheets_client):
        """Test that an existing worksheet is not recreated."""
        first = sheets_client.get_categories_sheet()
        first.rows.append(["1", "u1", "food", "expense"])
        assert sheets_client.get_categories_sheet() is first
        assert len(first.rows) == 2
