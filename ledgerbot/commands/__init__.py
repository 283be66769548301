"""Command parsing, execution and monthly settlement."""

from ledgerbot.commands.executor import CommandExecutor
from ledgerbot.commands.parser import classify, parse_command, tokenize
from ledgerbot.commands.summary import (
    MonthlyAggregator,
    month_window,
    partition_by_type,
)

__all__ = [
    "CommandExecutor",
    "MonthlyAggregator",
    "classify",
    "month_window",
    "parse_command",
    "partition_by_type",
    "tokenize",
]
