"""
Argument Validation for Chat Commands

The parser hands every argument over as a raw string. The helpers here turn
those strings into typed values or raise InputFormatError, which handlers
translate into a specific reply.

IMPORTANT: Validation NEVER silently fixes input. "12.5", "1_000" or
"５００" are rejected instead of being coerced into something the user
did not type.
"""

import re

from ledgerbot.models import EntryType

# ASCII digits with an optional sign, nothing else
_INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")

# Suffixes accepted on settlement arguments, e.g. "2025年 5月"
YEAR_SUFFIX = "年"
MONTH_SUFFIX = "月"

# The month after December of MAX_YEAR must still be a valid datetime
MAX_YEAR = 9998

_ENTRY_TYPE_ALIASES = {
    "income": EntryType.INCOME,
    "收入": EntryType.INCOME,
    "expense": EntryType.EXPENSE,
    "支出": EntryType.EXPENSE,
}


class InputFormatError(ValueError):
    """A command argument could not be interpreted."""

    def __init__(self, field: str, value: str, message: str):
        super().__init__(message)
        self.field = field
        self.value = value


def parse_amount(text: str, field: str = "amount") -> int:
    """
    Parse a whole-number amount.

    Raises:
        InputFormatError: If text is not a plain signed integer
    """
    if not _INTEGER_PATTERN.match(text):
        raise InputFormatError(field, text, f"Not an integer amount: {text!r}")
    return int(text)


def parse_entry_type(text: str) -> EntryType:
    """
    Parse a category type label.

    Accepts the persisted labels case-insensitively plus the Chinese
    vocabulary (收入 / 支出).
    """
    entry_type = _ENTRY_TYPE_ALIASES.get(text.strip().lower())
    if entry_type is None:
        raise InputFormatError("type", text, f"Unknown category type: {text!r}")
    return entry_type


def parse_year_month(year_text: str, month_text: str) -> tuple[int, int]:
    """
    Parse a settlement year/month pair.

    A trailing 年 / 月 is stripped before parsing.

    Raises:
        InputFormatError: If either part is not an integer, the year is
            outside 1-MAX_YEAR or the month is outside 1-12
    """
    year_text = year_text.removesuffix(YEAR_SUFFIX)
    month_text = month_text.removesuffix(MONTH_SUFFIX)

    if not _INTEGER_PATTERN.match(year_text) or not _INTEGER_PATTERN.match(month_text):
        raise InputFormatError(
            "month",
            f"{year_text} {month_text}",
            "Year and month must be integers",
        )

    year = int(year_text)
    month = int(month_text)

    if not 1 <= year <= MAX_YEAR:
        raise InputFormatError("year", year_text, f"Year out of range: {year}")
    if not 1 <= month <= 12:
        raise InputFormatError("month", month_text, f"Month out of range: {month}")

    return year, month
