"""CLI commands module."""

from . import accounts, check, config, inbox, read, unread, watch

__all__ = ["accounts", "check", "config", "inbox", "read", "unread", "watch"]
