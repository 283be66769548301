"""
Reply Vocabulary

Every string the bot can send back lives here so the handlers stay free of
wording and the tests can assert on the same constants.
"""

from ledgerbot.models import CategoryListing, EntryType, MonthlySummary

EMPTY_INPUT = "Please enter a valid command."
UNRECOGNIZED = "❓ Unrecognized command, please try again. Send \"help\" for the command list."
TRY_AGAIN_LATER = "⚠️ Something went wrong, please try again later."

# Categories
INVALID_CATEGORY_TYPE = "❌ Category type must be income or expense."
CATEGORY_ADD_FAILED = "❌ Could not add the category, please try again later."
CATEGORY_NOT_FOUND = "❌ Category does not exist."
CATEGORY_UPDATE_FAILED = "❌ Update failed, please try again later."
CATEGORY_DELETE_FAILED = "❌ Delete failed, please try again later."
CATEGORY_LIST_FAILED = "❌ Could not load categories, please try again later."
NO_CATEGORIES = "⚠️ You have not added any categories yet."

# Transactions
INVALID_AMOUNT = "Invalid amount format."
INVALID_AMOUNT_NUMBER = "Invalid amount format, please enter a number."
CATEGORY_MISSING_ADD_FIRST = "❌ Category does not exist, please add it first."
RECORD_FAILED = "Recording failed, please try again later."
NO_MATCHING_RECORD = "❌ No matching record found."
TRANSACTION_UPDATE_FAILED = "❌ Update failed, please try again later."
TRANSACTION_DELETE_FAILED = "❌ Delete failed, please try again later."

# Settlement
SUMMARY_FORMAT_ERROR = "⚠️ Invalid settle format, use: settle  or  settle 2025 5"
SUMMARY_FAILED = "Could not build the report, please try again later."

HELP_TEXT = """📖 Commands:

📂 Categories
- add-category income|expense <name>
- update-category <old name> <new name>
- delete-category <name>
- list-categories (show all your categories)

📝 Recording
- <category> <amount> (quick record)
- update <category> <old amount> <new amount>
- delete <category> <amount>

📊 Monthly report
- settle (current month)
- settle 2025 5 (a specific year and month)"""


def category_added(name: str, entry_type: EntryType) -> str:
    return f"✅ {entry_type.value.capitalize()} category {name} added!"


def category_exists(name: str) -> str:
    return f"❌ Category {name} already exists, please use another name."


def category_renamed(new_name: str) -> str:
    return f"✏️ Category renamed to: {new_name}"


def category_deleted(name: str) -> str:
    return f"🗑️ Category {name} deleted"


def transaction_recorded(entry_type: EntryType, amount: int, category: str) -> str:
    return f"✅ {entry_type.value} ${amount} category: {category} recorded!"


def transaction_updated(category: str, old_amount: int, new_amount: int) -> str:
    return f"✅ Changed {category} amount from ${old_amount} to ${new_amount}."


def transaction_deleted(category: str, amount: int) -> str:
    return f"🗑️ Deleted the {category} ${amount} record."


def format_category_listing(listing: CategoryListing) -> str:
    """Two-section category report; empty sections are left out."""
    lines = ["📂 Your categories:"]
    if listing.income:
        lines.append("💰 Income categories:")
        lines.extend(f"・{name}" for name in listing.income)
    if listing.expense:
        lines.append("💸 Expense categories:")
        lines.extend(f"・{name}" for name in listing.expense)
    return "\n".join(lines)


def format_summary(
    summary: MonthlySummary,
    income_details: dict[str, int],
    expense_details: dict[str, int],
) -> str:
    """
    Render a settlement report.

    Header with totals, then the income and expense breakdowns (each left out
    when empty), then the net result.
    """
    sections = [
        f"📊 {summary.year}/{summary.month}\n"
        f"Income: ${summary.income_total}\n"
        f"Expense: ${summary.expense_total}"
    ]

    if income_details:
        sections.append(
            "💰 Income details:\n"
            + "\n".join(f"・{name}: ${amount}" for name, amount in income_details.items())
        )
    if expense_details:
        sections.append(
            "💸 Expense details:\n"
            + "\n".join(f"・{name}: ${amount}" for name, amount in expense_details.items())
        )

    sections.append(f"💰 Net: ${summary.net_total}")
    return "\n\n".join(sections)
