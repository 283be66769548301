"""
Command Parser

Turns a raw chat message into a ParsedCommand by whitespace tokenization
and a first-match dispatch over keyword and token-count patterns.

DESIGN DECISION: Rule order is significant. Category keywords are tested
before the two-token quick-record rule, so "delete-category food" deletes a
category instead of recording an amount "food" under "delete-category".
Each keyword also accepts its Chinese command word.
"""

from typing import Callable

from ledgerbot.models import CommandIntent, ParsedCommand

ADD_CATEGORY_KEYWORDS = frozenset({"add-category", "新增類別"})
UPDATE_CATEGORY_KEYWORDS = frozenset({"update-category", "修改類別"})
DELETE_CATEGORY_KEYWORDS = frozenset({"delete-category", "刪除類別"})
LIST_CATEGORIES_KEYWORDS = frozenset({"list-categories", "已設定類別"})
UPDATE_TRANSACTION_KEYWORDS = frozenset({"update", "修改"})
DELETE_TRANSACTION_KEYWORDS = frozenset({"delete", "刪除"})
SUMMARY_KEYWORDS = frozenset({"settle", "結算"})
HELP_KEYWORDS = frozenset({"help", "指令大全"})


def tokenize(text: str) -> list[str]:
    """Split on any run of whitespace; blank input gives no tokens."""
    return text.split()


# (predicate over tokens, intent, slice of tokens kept as arguments)
_Rule = tuple[Callable[[list[str]], bool], CommandIntent, slice]

_RULES: list[_Rule] = [
    (
        lambda t: t[0] in ADD_CATEGORY_KEYWORDS and len(t) >= 3,
        CommandIntent.ADD_CATEGORY,
        slice(1, 3),
    ),
    (
        lambda t: t[0] in UPDATE_CATEGORY_KEYWORDS and len(t) == 3,
        CommandIntent.UPDATE_CATEGORY,
        slice(1, 3),
    ),
    (
        lambda t: t[0] in DELETE_CATEGORY_KEYWORDS and len(t) == 2,
        CommandIntent.DELETE_CATEGORY,
        slice(1, 2),
    ),
    (
        lambda t: t[0] in LIST_CATEGORIES_KEYWORDS,
        CommandIntent.LIST_CATEGORIES,
        slice(0, 0),
    ),
    (
        lambda t: len(t) == 2,
        CommandIntent.QUICK_TRANSACTION,
        slice(0, 2),
    ),
    (
        lambda t: t[0] in UPDATE_TRANSACTION_KEYWORDS and len(t) == 4,
        CommandIntent.UPDATE_TRANSACTION,
        slice(1, 4),
    ),
    (
        lambda t: t[0] in DELETE_TRANSACTION_KEYWORDS and len(t) == 3,
        CommandIntent.DELETE_TRANSACTION,
        slice(1, 3),
    ),
    (
        lambda t: t[0] in SUMMARY_KEYWORDS,
        CommandIntent.MONTHLY_SUMMARY,
        slice(1, None),
    ),
    (
        lambda t: t[0] in HELP_KEYWORDS,
        CommandIntent.HELP,
        slice(0, 0),
    ),
]


def classify(tokens: list[str]) -> tuple[CommandIntent, tuple[str, ...]]:
    """
    Classify a token list.

    Returns:
        (intent, arguments) for the first matching rule, EMPTY for no
        tokens, UNRECOGNIZED when nothing matches
    """
    if not tokens:
        return CommandIntent.EMPTY, ()

    for matches, intent, keep in _RULES:
        if matches(tokens):
            return intent, tuple(tokens[keep])

    return CommandIntent.UNRECOGNIZED, tuple(tokens)


def parse_command(text: str) -> ParsedCommand:
    """Parse a raw message into a ParsedCommand."""
    intent, arguments = classify(tokenize(text))
    return ParsedCommand(intent=intent, arguments=arguments, raw_text=text)
