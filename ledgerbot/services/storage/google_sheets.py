"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a durable backend because:
1. Users can look at their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- No transactions and no unique constraints. Check-then-append and id
  assignment are serialized with an in-process lock, which protects a
  single bot process only
- Limited query capabilities (we filter and aggregate in Python)
- Deleting a category removes its transaction rows one by one, so a
  failure midway can leave some of them behind

The implementation follows the abstract interface, so we can swap
to PostgreSQL/SQLite later without changing business logic.
"""

import asyncio
from datetime import datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ledgerbot.config import GoogleSheetsSettings, get_settings
from ledgerbot.log import get_logger
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
    StorageConnectionError,
    StorageError,
)

logger = get_logger(__name__)


# Column mappings for Categories sheet
CATEGORY_COLUMNS = [
    "id",
    "user_id",
    "name",
    "type",
]

# Column mappings for Transactions sheet
TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "category_id",
    "type",
    "amount",
    "created_at",
]

# 1-based sheet column numbers used for in-place updates
CATEGORY_NAME_COLUMN = CATEGORY_COLUMNS.index("name") + 1
TRANSACTION_AMOUNT_COLUMN = TRANSACTION_COLUMNS.index("amount") + 1

# Transient Sheets API failures are worth retrying; everything else is not
_retry_api = retry(
    retry=retry_if_exception_type(gspread.exceptions.APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        retry=retry_if_exception_type(StorageConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_categories_sheet(self) -> gspread.Worksheet:
        """Get or create the Categories worksheet."""
        return self._get_or_create_sheet(
            self._settings.categories_sheet_name, CATEGORY_COLUMNS
        )

    def get_transactions_sheet(self) -> gspread.Worksheet:
        """Get or create the Transactions worksheet."""
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS
        )


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of ledger storage.

    One category per row in the Categories sheet, one transaction per row
    in the Transactions sheet. Ids are assigned as max(existing id) + 1.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._write_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Row conversion
    # -------------------------------------------------------------------------

    @staticmethod
    def _category_to_row(category: Category) -> list:
        return [
            str(category.id),
            category.user_id,
            category.name,
            category.type.value,
        ]

    @staticmethod
    def _row_to_category(row: list) -> Category:
        return Category(
            id=int(row[0]),
            user_id=row[1],
            name=row[2],
            type=EntryType(row[3]),
        )

    @staticmethod
    def _transaction_to_row(transaction: Transaction) -> list:
        return [
            str(transaction.id),
            transaction.user_id,
            str(transaction.category_id),
            transaction.type.value,
            str(transaction.amount),
            transaction.created_at.isoformat(),
        ]

    @staticmethod
    def _row_to_transaction(row: list) -> Transaction:
        return Transaction(
            id=int(row[0]),
            user_id=row[1],
            category_id=int(row[2]),
            type=EntryType(row[3]),
            amount=int(row[4]),
            created_at=datetime.fromisoformat(row[5]),
        )

    # -------------------------------------------------------------------------
    # Sheet access
    # -------------------------------------------------------------------------

    @_retry_api
    def _read_rows(self, sheet: gspread.Worksheet) -> list[list]:
        return sheet.get_all_values()

    @_retry_api
    def _append_row(self, sheet: gspread.Worksheet, row: list) -> None:
        sheet.append_row(row, value_input_option="RAW")

    @_retry_api
    def _update_cell(self, sheet: gspread.Worksheet, row: int, col: int, value: str) -> None:
        # Worksheet.update_cell always parses input as USER_ENTERED
        sheet.update(
            range_name=rowcol_to_a1(row, col),
            values=[[value]],
            value_input_option="RAW",
        )

    def _read_categories(self) -> list[tuple[int, Category]]:
        """All parseable category rows as (sheet row number, category)."""
        sheet = self._client.get_categories_sheet()
        records = []
        # Row 1 is the header
        for idx, row in enumerate(self._read_rows(sheet)[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                records.append((idx, self._row_to_category(row)))
            except (ValueError, IndexError):
                logger.warning("sheets_malformed_row", sheet="categories", row=idx)
        return records

    def _read_transactions(self) -> list[tuple[int, Transaction]]:
        """All parseable transaction rows as (sheet row number, transaction)."""
        sheet = self._client.get_transactions_sheet()
        records = []
        for idx, row in enumerate(self._read_rows(sheet)[1:], start=2):
            if not row or not row[0]:
                continue
            try:
                records.append((idx, self._row_to_transaction(row)))
            except (ValueError, IndexError):
                logger.warning("sheets_malformed_row", sheet="transactions", row=idx)
        return records

    def _find_category(self, user_id: str, name: str) -> Optional[tuple[int, Category]]:
        for idx, category in self._read_categories():
            if category.user_id == user_id and category.name == name:
                return idx, category
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
        try:
            return self._find_category(user_id, name) is not None
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to check category: {e}") from e

    async def add_category(
        self,
        user_id: str,
        name: str,
        entry_type: EntryType,
    ) -> Category:
        async with self._write_lock:
            try:
                categories = self._read_categories()
                for _, existing in categories:
                    if existing.user_id == user_id and existing.name == name:
                        raise DuplicateError(f"Category already exists: {name}")

                category = Category(
                    id=max((c.id for _, c in categories), default=0) + 1,
                    user_id=user_id,
                    name=name,
                    type=entry_type,
                )
                self._append_row(
                    self._client.get_categories_sheet(),
                    self._category_to_row(category),
                )
                return category
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(f"Failed to add category: {e}") from e

    async def rename_category(
        self,
        user_id: str,
        old_name: str,
        new_name: str,
    ) -> int:
        async with self._write_lock:
            try:
                found = self._find_category(user_id, old_name)
                if found is None:
                    return 0

                if new_name != old_name and self._find_category(user_id, new_name) is not None:
                    raise DuplicateError(f"Category already exists: {new_name}")

                idx, _ = found
                sheet = self._client.get_categories_sheet()
                self._update_cell(sheet, idx, CATEGORY_NAME_COLUMN, new_name)
                return 1
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(f"Failed to rename category: {e}") from e

    async def delete_category(self, user_id: str, name: str) -> int:
        async with self._write_lock:
            try:
                found = self._find_category(user_id, name)
                if found is None:
                    return 0

                idx, category = found

                # Delete bottom-up so earlier row numbers stay valid
                txn_rows = sorted(
                    (row for row, txn in self._read_transactions()
                     if txn.category_id == category.id),
                    reverse=True,
                )
                txn_sheet = self._client.get_transactions_sheet()
                for row in txn_rows:
                    txn_sheet.delete_rows(row)

                self._client.get_categories_sheet().delete_rows(idx)
                logger.info(
                    "sheets_category_deleted",
                    category_id=category.id,
                    cascaded_transactions=len(txn_rows),
                )
                return 1
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(f"Failed to delete category: {e}") from e

    async def list_categories_by_type(
        self,
        user_id: str,
    ) -> dict[EntryType, list[str]]:
        try:
            owned = sorted(
                (c for _, c in self._read_categories() if c.user_id == user_id),
                key=lambda c: (c.type.value, c.name),
            )
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}") from e

        grouped: dict[EntryType, list[str]] = {}
        for category in owned:
            grouped.setdefault(category.type, []).append(category.name)
        return grouped

    async def get_category_id_and_type(
        self,
        user_id: str,
        name: str,
    ) -> Optional[tuple[int, EntryType]]:
        try:
            found = self._find_category(user_id, name)
        except Exception as e:
            raise StorageError(f"Failed to get category: {e}") from e

        if found is None:
            return None
        _, category = found
        return category.id, category.type

    async def get_categories_info(self, user_id: str) -> dict[str, EntryType]:
        try:
            return {
                c.name: c.type
                for _, c in self._read_categories()
                if c.user_id == user_id
            }
        except Exception as e:
            raise StorageError(f"Failed to get category info: {e}") from e

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
        async with self._write_lock:
            try:
                if not any(c.id == category_id for _, c in self._read_categories()):
                    raise NotFoundError(f"Category not found: {category_id}")

                existing = self._read_transactions()
                transaction = Transaction(
                    id=max((t.id for _, t in existing), default=0) + 1,
                    user_id=user_id,
                    category_id=category_id,
                    type=entry_type,
                    amount=amount,
                    created_at=created_at or utc_now(),
                )
                self._append_row(
                    self._client.get_transactions_sheet(),
                    self._transaction_to_row(transaction),
                )
                return transaction
            except StorageError:
                raise
            except Exception as e:
                raise StorageError(f"Failed to add transaction: {e}") from e

    async def find_transaction_id(
        self,
        user_id: str,
        category_name: str,
        amount: int,
    ) -> Optional[int]:
        try:
            found = self._find_category(user_id, category_name)
            if found is None:
                return None
            _, category = found

            matches = [
                txn
                for _, txn in self._read_transactions()
                if txn.user_id == user_id
                and txn.category_id == category.id
                and txn.amount == amount
            ]
        except Exception as e:
            raise StorageError(f"Failed to find transaction: {e}") from e

        if not matches:
            return None
        return max(matches, key=lambda t: (t.created_at, t.id)).id

    async def update_transaction_amount(
        self,
        transaction_id: int,
        new_amount: int,
    ) -> int:
        async with self._write_lock:
            try:
                for idx, txn in self._read_transactions():
                    if txn.id == transaction_id:
                        sheet = self._client.get_transactions_sheet()
                        self._update_cell(sheet, idx, TRANSACTION_AMOUNT_COLUMN, str(new_amount))
                        return 1
                return 0
            except Exception as e:
                raise StorageError(f"Failed to update transaction: {e}") from e

    async def delete_transaction(self, transaction_id: int) -> int:
        async with self._write_lock:
            try:
                for idx, txn in self._read_transactions():
                    if txn.id == transaction_id:
                        self._client.get_transactions_sheet().delete_rows(idx)
                        return 1
                return 0
            except Exception as e:
                raise StorageError(f"Failed to delete transaction: {e}") from e

    async def monthly_aggregate(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
    ) -> list[CategoryAggregate]:
        start, end = as_utc(start), as_utc(end)
        try:
            names = {c.id: c.name for _, c in self._read_categories()}
            transactions = [txn for _, txn in self._read_transactions()]
        except Exception as e:
            raise StorageError(f"Failed to aggregate transactions: {e}") from e

        totals: dict[tuple[str, EntryType], int] = {}
        for txn in transactions:
            if txn.user_id != user_id or not start <= txn.created_at < end:
                continue
            name = names.get(txn.category_id)
            if name is None:
                continue
            key = (name, txn.type)
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
        try:
            names = {c.id: c.name for _, c in self._read_categories()}
            owned = [
                txn for _, txn in self._read_transactions()
                if txn.user_id == user_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}") from e

        owned.sort(key=lambda t: (t.created_at, t.id), reverse=True)
        return [
            TransactionView(
                id=txn.id,
                category_name=names.get(txn.category_id),
                type=txn.type,
                amount=txn.amount,
                created_at=txn.created_at,
            )
            for txn in owned[:limit]
        ]
