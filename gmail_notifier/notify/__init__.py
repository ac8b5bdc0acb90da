"""Local notifications for new unread mail."""

from .desktop import (
    ConsoleNotifier,
    DesktopNotifier,
    Notifier,
    create_notifier,
    notification_id,
)

__all__ = [
    "ConsoleNotifier",
    "DesktopNotifier",
    "Notifier",
    "create_notifier",
    "notification_id",
]
