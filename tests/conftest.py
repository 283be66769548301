"""Shared fixtures for the ledger bot tests."""

from datetime import datetime, timezone

import pytest

from ledgerbot.commands import CommandExecutor
from ledgerbot.interpreter import MessageInterpreter
from ledgerbot.services.storage import InMemoryLedgerStorage

USER = "user-1"
OTHER_USER = "user-2"

# Every test that records or settles sees the same "now"
FIXED_NOW = datetime(2025, 5, 15, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def executor(storage):
    return CommandExecutor(storage, clock=fixed_clock)


@pytest.fixture
def interpreter(storage):
    return MessageInterpreter(storage, clock=fixed_clock)
