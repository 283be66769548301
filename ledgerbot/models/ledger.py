"""
Core Data Models for the Ledger Bot

These models define the schemas for everything flowing between the
command interpreter and the storage layer:
1. Categories and their fixed income/expense type
2. Transactions, whose type is frozen when they are recorded
3. Parsed commands produced by the parser
4. Monthly summaries rebuilt on every settlement request

DESIGN DECISION: The income/expense distinction is a closed enum with an
explicit persisted label. Storage backends write `EntryType.value` and read
it back through `EntryType(...)`, so free-form type strings never reach the
business logic.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Convert to UTC; naive datetimes are assumed to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryType(str, Enum):
    """
    Direction of money for a category and its transactions.

    The value is the persisted label.
    """
    INCOME = "income"
    EXPENSE = "expense"


class CommandIntent(str, Enum):
    """Every command the interpreter can recognize."""
    EMPTY = "empty"
    ADD_CATEGORY = "add_category"
    UPDATE_CATEGORY = "update_category"
    DELETE_CATEGORY = "delete_category"
    LIST_CATEGORIES = "list_categories"
    QUICK_TRANSACTION = "quick_transaction"
    UPDATE_TRANSACTION = "update_transaction"
    DELETE_TRANSACTION = "delete_transaction"
    MONTHLY_SUMMARY = "monthly_summary"
    HELP = "help"
    UNRECOGNIZED = "unrecognized"


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class Category(BaseModel):
    """
    A user-defined bucket with a fixed income/expense type.

    Identity from the user's point of view is (user_id, name); the numeric
    id is assigned by the store and survives renames.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: int = Field(
        ...,
        ge=1,
        description="Store-assigned identifier"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of the category"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category name, unique per user"
    )
    type: EntryType = Field(
        ...,
        description="Income or expense"
    )


class Transaction(BaseModel):
    """
    A single recorded monetary event.

    CRITICAL: `type` is copied from the category at creation time and is
    never re-derived, so renaming or retyping a category does not rewrite
    history. Only `amount` is mutable after creation.
    """

    id: int = Field(
        ...,
        ge=1,
        description="Store-assigned identifier"
    )
    user_id: str = Field(
        ...,
        min_length=1
    )
    category_id: int = Field(
        ...,
        ge=1,
        description="Owning category at creation time"
    )
    type: EntryType
    amount: int = Field(
        ...,
        description="Signed integer amount; sign is not tied to type"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the transaction was recorded (UTC)"
    )

    @field_validator('created_at')
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are treated as UTC."""
        return as_utc(v)


class CategoryAggregate(BaseModel):
    """One (transaction type, category name) group from a monthly query."""

    type: EntryType
    category_name: str
    total: int


# =============================================================================
# INTERPRETER MODELS
# =============================================================================

class ParsedCommand(BaseModel):
    """
    The classified form of a raw message.

    The parser never validates argument contents; amounts and types stay
    raw strings until the matching handler checks them.
    """
    model_config = ConfigDict(frozen=True)

    intent: CommandIntent
    arguments: tuple[str, ...] = Field(default_factory=tuple)
    raw_text: str = ""


class MonthlySummary(BaseModel):
    """
    Income/expense totals for one calendar month.

    Derived on every request and never persisted or cached.
    """

    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)
    income_total: int = 0
    expense_total: int = 0
    category_totals: dict[str, int] = Field(default_factory=dict)

    @property
    def net_total(self) -> int:
        """Income minus expense; may be negative."""
        return self.income_total - self.expense_total


class CategoryListing(BaseModel):
    """Category names of one user, split by type, in store order."""

    income: list[str] = Field(default_factory=list)
    expense: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.income and not self.expense

    @classmethod
    def from_mapping(
        cls,
        mapping: dict[EntryType, list[str]],
    ) -> "CategoryListing":
        return cls(
            income=list(mapping.get(EntryType.INCOME, [])),
            expense=list(mapping.get(EntryType.EXPENSE, [])),
        )


class TransactionView(BaseModel):
    """A transaction joined with its category name, for display."""

    id: int
    category_name: Optional[str] = None
    type: EntryType
    amount: int
    created_at: datetime
