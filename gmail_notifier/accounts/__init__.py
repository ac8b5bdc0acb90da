"""Saved accounts and their last-known unread counts."""

from .models import SavedAccount
from .registry import ACCOUNTS_KEY, AccountRegistry

__all__ = ["ACCOUNTS_KEY", "AccountRegistry", "SavedAccount"]
