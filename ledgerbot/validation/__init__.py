"""Argument validation package."""

from ledgerbot.validation.validator import (
    InputFormatError,
    parse_amount,
    parse_entry_type,
    parse_year_month,
)

__all__ = [
    "InputFormatError",
    "parse_amount",
    "parse_entry_type",
    "parse_year_month",
]
