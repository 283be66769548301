"""
Streamlit Frontend for the Ledger Bot

A chat window in front of the command interpreter. Every message typed here
goes through exactly the same path a chat platform webhook would use:
(user id, text) in, reply string out.

DESIGN PRINCIPLES:
1. The page never talks to storage for writes; only the interpreter does
2. Replies are shown verbatim
3. Read-only views (recent transactions, settings) are side pages
"""

import asyncio

import streamlit as st

from ledgerbot.commands import messages
from ledgerbot.config import get_settings, validate_all_settings
from ledgerbot.interpreter import MessageInterpreter, create_app_components
from ledgerbot.services.storage import (
    GoogleSheetsLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)


# Page configuration
st.set_page_config(
    page_title="Ledger Bot",
    page_icon="📒",
    layout="centered",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def main():
    """Main application entry point."""
    interpreter, storage = get_components()
    app_settings = get_settings().app

    # Sidebar navigation
    st.sidebar.title("📒 Ledger Bot")
    st.sidebar.markdown("---")

    user_id = st.sidebar.text_input(
        "User id",
        value=app_settings.default_user_id,
        help="Categories and transactions are kept separately per user id",
    ).strip() or app_settings.default_user_id

    page = st.sidebar.radio(
        "Navigate to:",
        ["💬 Chat", "🧾 Recent Transactions", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **Try:**
        - `add-category income salary`
        - `salary 5000`
        - `settle`
        - `help`
        """
    )

    # Route to appropriate page
    if page == "💬 Chat":
        render_chat_page(interpreter, user_id)
    elif page == "🧾 Recent Transactions":
        render_transactions_page(storage, user_id, app_settings.recent_transactions_limit)
    elif page == "⚙️ Settings":
        render_settings_page(storage)


def render_chat_page(interpreter: MessageInterpreter, user_id: str):
    """Render the chat page."""
    st.title("💬 Chat")

    # History is kept per user id so switching users does not mix replies
    histories = st.session_state.setdefault("histories", {})
    history = histories.setdefault(user_id, [])

    for entry in history:
        with st.chat_message(entry["role"]):
            st.text(entry["content"])

    text = st.chat_input("Type a command, e.g. lunch 120")
    if text is None:
        return

    history.append({"role": "user", "content": text})
    with st.chat_message("user"):
        st.text(text)

    reply = run_async(interpreter.handle_message(user_id, text))

    history.append({"role": "assistant", "content": reply})
    with st.chat_message("assistant"):
        st.text(reply)


def render_transactions_page(
    storage: LedgerStorageInterface,
    user_id: str,
    limit: int,
):
    """Render the recent transactions page."""
    st.title("🧾 Recent Transactions")
    st.markdown(f"The latest {limit} records for **{user_id}**, newest first.")

    try:
        transactions = run_async(storage.list_transactions(user_id, limit=limit))
    except StorageError:
        st.error(messages.TRY_AGAIN_LATER)
        return

    if not transactions:
        st.info("📋 No transactions yet. Record one from the Chat page, e.g. `lunch 120`.")
        return

    st.dataframe(
        [
            {
                "id": t.id,
                "category": t.category_name or "(deleted)",
                "type": t.type.value,
                "amount": t.amount,
                "created_at (UTC)": t.created_at.strftime("%Y-%m-%d %H:%M"),
            }
            for t in transactions
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_settings_page(storage: LedgerStorageInterface):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Storage")
    if isinstance(storage, GoogleSheetsLedgerStorage):
        st.success("✅ Google Sheets - Connected")
    else:
        st.warning("⚠️ In-memory storage - data is lost when the app restarts")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Application", "app"),
        ("Google Sheets (Storage)", "google_sheets"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
