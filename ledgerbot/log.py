"""
Structured Logging

Every command the interpreter handles is logged with key/value fields so a
single conversation turn can be followed through parser, handler and store.

The logger:
- Emits JSON in production and readable console lines in development
- Carries a per-message request id through structlog context variables
- Never surfaces logged causes to the chat user
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

_configured = False


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    if _configured:
        logging.getLogger().setLevel(numeric_level)
        return

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally named after its module."""
    return structlog.get_logger(name)


def create_request_id() -> UUID:
    """
    Create a new id for one inbound message.

    Bound into the structlog context so every log line emitted while
    handling the message carries it.
    """
    return uuid4()
