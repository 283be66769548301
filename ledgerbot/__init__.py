"""
Ledger Bot

A chat-driven bookkeeping assistant: short text commands in, confirmation
replies out. Categories and transactions are kept per user in a pluggable
storage backend.
"""

__version__ = "1.0.0"
