"""
Message Interpreter for the Ledger Bot

This module ties the parser and the executor together and defines the
single entry point a delivery front end talks to:

    text → parse → execute → reply

DESIGN DECISION: The interpreter is constructed with an explicit storage
object. Nothing here reaches for a global database handle, so tests hand in
an in-memory store and the front end hands in whatever the configuration
selects.
"""

from typing import Optional

import structlog

from ledgerbot.commands import CommandExecutor, parse_command
from ledgerbot.commands import messages
from ledgerbot.commands.executor import Clock
from ledgerbot.config import Settings, get_settings
from ledgerbot.log import configure_logging, create_request_id, get_logger
from ledgerbot.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
)

logger = get_logger(__name__)


class MessageInterpreter:
    """
    Turns one chat message into one reply.

    GUARANTEES:
    - Always returns a non-empty string
    - Never raises to the caller
    - Keeps no state between messages
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        clock: Optional[Clock] = None,
    ):
        self._storage = storage
        self._executor = CommandExecutor(storage, clock=clock)

    @property
    def storage(self) -> LedgerStorageInterface:
        return self._storage

    async def handle_message(self, user_id: str, text: str) -> str:
        """
        Interpret a raw message from a user.

        Every log line emitted while handling the message carries the same
        request_id and user_id.
        """
        with structlog.contextvars.bound_contextvars(
            request_id=str(create_request_id()),
            user_id=user_id,
        ):
            try:
                command = parse_command(text)
                logger.info(
                    "message_received",
                    intent=command.intent.value,
                    token_count=len(command.arguments),
                )
                reply = await self._executor.execute(user_id, command)
            except Exception as e:
                logger.error("message_failed", error=str(e), exc_info=True)
                return messages.TRY_AGAIN_LATER

            return reply or messages.TRY_AGAIN_LATER


def create_storage(settings: Settings) -> LedgerStorageInterface:
    """
    Build the storage backend named by the configuration.

    Falls back to in-memory storage when Google Sheets cannot be set up.
    """
    backend = settings.app.storage_backend

    if backend == "google_sheets":
        try:
            client = GoogleSheetsClient(settings.google_sheets)
            client.connect()
            logger.info("storage_initialized", backend=backend)
            return GoogleSheetsLedgerStorage(client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning(
                "storage_fallback",
                backend=backend,
                fallback="memory",
                error=str(e),
            )

    logger.info("storage_initialized", backend="memory")
    return InMemoryLedgerStorage()


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[MessageInterpreter, LedgerStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from. Defaults to get_settings().

    Returns:
        (interpreter, storage)
    """
    settings = settings or get_settings()
    app_settings = settings.app

    configure_logging(
        level=app_settings.log_level,
        json_output=app_settings.is_production,
    )

    storage = create_storage(settings)
    return MessageInterpreter(storage), storage
