"""Background polling of unread counts."""

from .poller import PassResult, UnreadPoller

__all__ = ["PassResult", "UnreadPoller"]
