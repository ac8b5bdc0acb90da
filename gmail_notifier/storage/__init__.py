"""Persistent key-value storage."""

from .store import FileStore

__all__ = ["FileStore"]
