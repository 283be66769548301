"""
Command Execution Engine

DESIGN DECISION: Every handler returns a reply string and NEVER raises.
Failures are sorted into three kinds and each kind has its own reply:
- input format problems (InputFormatError) get a specific correction hint
- not-found conditions (None / zero rows) get a "not found" reply
- store failures (StorageError and anything unexpected) get a generic
  "try again later" reply; the cause is logged, never shown to the user

The executor holds no state beyond the injected storage and clock, so one
instance can serve any number of users.
"""

from datetime import datetime
from typing import Callable, Optional

from ledgerbot.commands import messages
from ledgerbot.commands.summary import (
    MonthlyAggregator,
    partition_by_type,
    reference_for,
)
from ledgerbot.log import get_logger
from ledgerbot.models import (
    CategoryListing,
    CommandIntent,
    EntryType,
    ParsedCommand,
    utc_now,
)
from ledgerbot.services.storage import (
    DuplicateError,
    LedgerStorageInterface,
    StorageError,
)
from ledgerbot.validation import (
    InputFormatError,
    parse_amount,
    parse_entry_type,
    parse_year_month,
)

logger = get_logger(__name__)

Clock = Callable[[], datetime]


class CommandExecutor:
    """
    Executes parsed chat commands against ledger storage.

    GUARANTEES:
    - A malformed amount never reaches the store
    - Transaction type is copied from the category at creation time
    - Update and delete target the most recent (category, amount) match
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        clock: Optional[Clock] = None,
    ):
        self._storage = storage
        self._clock = clock or utc_now
        self._aggregator = MonthlyAggregator(storage)

    async def execute(self, user_id: str, command: ParsedCommand) -> str:
        """Run a parsed command for a user and return the reply."""
        args = command.arguments
        try:
            # Route to the handler for the intent
            if command.intent == CommandIntent.EMPTY:
                return messages.EMPTY_INPUT
            elif command.intent == CommandIntent.ADD_CATEGORY:
                return await self._add_category(user_id, args[0], args[1])
            elif command.intent == CommandIntent.UPDATE_CATEGORY:
                return await self._update_category(user_id, args[0], args[1])
            elif command.intent == CommandIntent.DELETE_CATEGORY:
                return await self._delete_category(user_id, args[0])
            elif command.intent == CommandIntent.LIST_CATEGORIES:
                return await self._list_categories(user_id)
            elif command.intent == CommandIntent.QUICK_TRANSACTION:
                return await self._quick_transaction(user_id, args[0], args[1])
            elif command.intent == CommandIntent.UPDATE_TRANSACTION:
                return await self._update_transaction(user_id, args[0], args[1], args[2])
            elif command.intent == CommandIntent.DELETE_TRANSACTION:
                return await self._delete_transaction(user_id, args[0], args[1])
            elif command.intent == CommandIntent.MONTHLY_SUMMARY:
                return await self._monthly_summary(user_id, list(args))
            elif command.intent == CommandIntent.HELP:
                return messages.HELP_TEXT
            else:
                logger.info("command_unrecognized", raw_text=command.raw_text)
                return messages.UNRECOGNIZED

        except Exception as e:
            logger.error(
                "command_failed",
                intent=command.intent.value,
                error=str(e),
                exc_info=True,
            )
            return messages.TRY_AGAIN_LATER

    # Categories

    async def _add_category(self, user_id: str, type_text: str, name: str) -> str:
        try:
            entry_type = parse_entry_type(type_text)
        except InputFormatError as e:
            logger.warning("invalid_category_type", value=e.value)
            return messages.INVALID_CATEGORY_TYPE

        try:
            await self._storage.add_category(user_id, name, entry_type)
        except DuplicateError:
            logger.info("category_already_exists", name=name)
            return messages.category_exists(name)
        except StorageError as e:
            logger.error("category_add_failed", name=name, error=str(e), exc_info=True)
            return messages.CATEGORY_ADD_FAILED

        logger.info("category_added", name=name, type=entry_type.value)
        return messages.category_added(name, entry_type)

    async def _update_category(self, user_id: str, old_name: str, new_name: str) -> str:
        try:
            affected = await self._storage.rename_category(user_id, old_name, new_name)
        except DuplicateError:
            logger.info("category_rename_conflict", old_name=old_name, new_name=new_name)
            return messages.category_exists(new_name)
        except StorageError as e:
            logger.error("category_rename_failed", old_name=old_name, error=str(e), exc_info=True)
            return messages.CATEGORY_UPDATE_FAILED

        if affected == 0:
            logger.warning("category_not_found", name=old_name)
            return messages.CATEGORY_NOT_FOUND

        logger.info("category_renamed", old_name=old_name, new_name=new_name)
        return messages.category_renamed(new_name)

    async def _delete_category(self, user_id: str, name: str) -> str:
        try:
            affected = await self._storage.delete_category(user_id, name)
        except StorageError as e:
            logger.error("category_delete_failed", name=name, error=str(e), exc_info=True)
            return messages.CATEGORY_DELETE_FAILED

        if affected == 0:
            logger.warning("category_not_found", name=name)
            return messages.CATEGORY_NOT_FOUND

        logger.info("category_deleted", name=name)
        return messages.category_deleted(name)

    async def _list_categories(self, user_id: str) -> str:
        try:
            grouped = await self._storage.list_categories_by_type(user_id)
        except StorageError as e:
            logger.error("category_list_failed", error=str(e), exc_info=True)
            return messages.CATEGORY_LIST_FAILED

        listing = CategoryListing.from_mapping(grouped)
        if listing.is_empty:
            return messages.NO_CATEGORIES
        return messages.format_category_listing(listing)

    # Transactions

    async def _quick_transaction(self, user_id: str, category: str, amount_text: str) -> str:
        try:
            amount = parse_amount(amount_text)
        except InputFormatError as e:
            logger.warning("invalid_amount", value=e.value)
            return messages.INVALID_AMOUNT

        try:
            resolved = await self._storage.get_category_id_and_type(user_id, category)
            if resolved is None:
                logger.warning("category_not_found", name=category)
                return messages.CATEGORY_MISSING_ADD_FIRST

            category_id, entry_type = resolved
            transaction = await self._storage.add_transaction(
                user_id,
                category_id,
                entry_type,
                amount,
                created_at=self._clock(),
            )
        except StorageError as e:
            logger.error("transaction_record_failed", category=category, error=str(e), exc_info=True)
            return messages.RECORD_FAILED

        logger.info(
            "transaction_recorded",
            transaction_id=transaction.id,
            category=category,
            type=entry_type.value,
            amount=amount,
        )
        return messages.transaction_recorded(entry_type, amount, category)

    async def _update_transaction(
        self,
        user_id: str,
        category: str,
        old_text: str,
        new_text: str,
    ) -> str:
        try:
            old_amount = parse_amount(old_text, field="old_amount")
            new_amount = parse_amount(new_text, field="new_amount")
        except InputFormatError as e:
            logger.warning("invalid_amount", field=e.field, value=e.value)
            return messages.INVALID_AMOUNT_NUMBER

        try:
            transaction_id = await self._storage.find_transaction_id(user_id, category, old_amount)
            if transaction_id is None:
                logger.warning("transaction_not_found", category=category, amount=old_amount)
                return messages.NO_MATCHING_RECORD

            affected = await self._storage.update_transaction_amount(transaction_id, new_amount)
        except StorageError as e:
            logger.error("transaction_update_failed", category=category, error=str(e), exc_info=True)
            return messages.TRANSACTION_UPDATE_FAILED

        if affected == 0:
            logger.warning("transaction_vanished", transaction_id=transaction_id)
            return messages.NO_MATCHING_RECORD

        logger.info(
            "transaction_updated",
            transaction_id=transaction_id,
            old_amount=old_amount,
            new_amount=new_amount,
        )
        return messages.transaction_updated(category, old_amount, new_amount)

    async def _delete_transaction(self, user_id: str, category: str, amount_text: str) -> str:
        try:
            amount = parse_amount(amount_text)
        except InputFormatError as e:
            logger.warning("invalid_amount", value=e.value)
            return messages.INVALID_AMOUNT_NUMBER

        try:
            transaction_id = await self._storage.find_transaction_id(user_id, category, amount)
            if transaction_id is None:
                logger.warning("transaction_not_found", category=category, amount=amount)
                return messages.NO_MATCHING_RECORD

            affected = await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            logger.error("transaction_delete_failed", category=category, error=str(e), exc_info=True)
            return messages.TRANSACTION_DELETE_FAILED

        if affected == 0:
            logger.warning("transaction_vanished", transaction_id=transaction_id)
            return messages.NO_MATCHING_RECORD

        logger.info("transaction_deleted", transaction_id=transaction_id, amount=amount)
        return messages.transaction_deleted(category, amount)

    # Settlement

    async def _monthly_summary(self, user_id: str, month_args: list[str]) -> str:
        year: Optional[int] = None
        month: Optional[int] = None

        # Only an exact year/month pair selects a month; anything else means now
        if len(month_args) == 2:
            try:
                year, month = parse_year_month(month_args[0], month_args[1])
            except InputFormatError as e:
                logger.warning("invalid_settle_format", field=e.field, value=e.value)
                return messages.SUMMARY_FORMAT_ERROR

        reference = reference_for(year, month, self._clock())

        try:
            summary = await self._aggregator.aggregate(user_id, reference)
        except StorageError as e:
            logger.error("summary_failed", error=str(e), exc_info=True)
            return messages.SUMMARY_FAILED

        categories_info: dict[str, EntryType]
        try:
            categories_info = await self._storage.get_categories_info(user_id)
        except StorageError as e:
            logger.warning("categories_info_unavailable", error=str(e))
            categories_info = {}

        income_details, expense_details = partition_by_type(
            summary.category_totals, categories_info
        )
        return messages.format_summary(summary, income_details, expense_details)
