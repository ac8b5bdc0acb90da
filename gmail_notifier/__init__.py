"""gmail-notifier: poll several Gmail accounts and notify on new unread mail."""

__version__ = "0.1.0"
