"""
Monthly Aggregation

Builds the settlement summary for one calendar month.

The window is half-open in UTC: [first instant of the month, first instant
of the next month). A transaction at exactly midnight on the 1st belongs to
the new month only, so nothing is counted twice across a boundary.
"""

from datetime import datetime, timezone
from typing import Optional

from ledgerbot.log import get_logger
from ledgerbot.models import EntryType, MonthlySummary, as_utc
from ledgerbot.services.storage import LedgerStorageInterface

logger = get_logger(__name__)


def month_window(reference: datetime) -> tuple[datetime, datetime]:
    """
    Half-open UTC window of the month containing reference.

    Returns:
        (start, end) with start inclusive and end exclusive
    """
    reference = as_utc(reference)
    start = datetime(reference.year, reference.month, 1, tzinfo=timezone.utc)
    if reference.month == 12:
        end = datetime(reference.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(reference.year, reference.month + 1, 1, tzinfo=timezone.utc)
    return start, end


def partition_by_type(
    category_totals: dict[str, int],
    categories_info: dict[str, EntryType],
) -> tuple[dict[str, int], dict[str, int]]:
    """
    Split category totals into (income, expense) detail sections.

    Categories are placed by their current type. A category whose type
    cannot be resolved (renamed or deleted since, or the lookup failed)
    falls back to the sign of its total: positive means income, zero or
    negative means expense.

    KNOWN LIMITATION: the sign fallback misfiles zero-sum income and
    negative-amount income categories. It is kept because it only applies
    when the current category mapping is unavailable.
    """
    income: dict[str, int] = {}
    expense: dict[str, int] = {}

    for name, total in category_totals.items():
        entry_type = categories_info.get(name)
        if entry_type is None:
            entry_type = EntryType.INCOME if total > 0 else EntryType.EXPENSE

        if entry_type is EntryType.INCOME:
            income[name] = total
        else:
            expense[name] = total

    return income, expense


class MonthlyAggregator:
    """
    Aggregates a user's transactions into a MonthlySummary.

    Stateless apart from the injected storage; every call queries afresh.
    """

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    async def aggregate(
        self,
        user_id: str,
        reference: datetime,
    ) -> MonthlySummary:
        """
        Summarize the month containing reference.

        Income groups add to income_total, every other group to
        expense_total. If one category name shows up under both types,
        its category_totals entry is the sum of both groups.

        Raises:
            StorageError: If the aggregate query fails
        """
        start, end = month_window(reference)
        groups = await self._storage.monthly_aggregate(user_id, start, end)

        income_total = 0
        expense_total = 0
        category_totals: dict[str, int] = {}

        for group in groups:
            category_totals[group.category_name] = (
                category_totals.get(group.category_name, 0) + group.total
            )
            if group.type is EntryType.INCOME:
                income_total += group.total
            else:
                expense_total += group.total

        logger.info(
            "monthly_aggregate_built",
            year=start.year,
            month=start.month,
            income_total=income_total,
            expense_total=expense_total,
            categories_count=len(category_totals),
        )

        return MonthlySummary(
            year=start.year,
            month=start.month,
            income_total=income_total,
            expense_total=expense_total,
            category_totals=category_totals,
        )


def reference_for(year: Optional[int], month: Optional[int], now: datetime) -> datetime:
    """First instant of the requested month, or now when none was given."""
    if year is None or month is None:
        return as_utc(now)
    return datetime(year, month, 1, tzinfo=timezone.utc)
