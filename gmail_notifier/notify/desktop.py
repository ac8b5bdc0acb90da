"""Local notification backends.

Desktop notifications shell out to the platform's notifier command
(`notify-send` on Linux, `osascript` on macOS) rather than binding to a
GUI toolkit. The console backend prints to the terminal and is used when
no desktop notifier exists.

Every backend must be initialized once with init() before show().
"""

import logging
import shutil
import subprocess
import sys
import zlib

import typer

from gmail_notifier.errors import NotifierUnavailable

logger = logging.getLogger(__name__)

APP_NAME = "Gmail Notifier"


def notification_id(email: str) -> int:
    """Stable per-account notification id, the same in every process."""
    return zlib.crc32(email.encode("utf-8")) & 0x7FFFFFFF


class Notifier:
    """Base class for notification backends."""

    def __init__(self):
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self) -> None:
        """One-time setup. Calling it again does nothing."""
        if self._initialized:
            return
        self._setup()
        self._initialized = True

    def show(self, notification_id: int, title: str, body: str) -> None:
        """Display a notification.

        Raises:
            RuntimeError: If init() hasn't been called.
        """
        if not self._initialized:
            raise RuntimeError(f"{type(self).__name__}.init() must be called first")
        self._show(notification_id, title, body)

    def _setup(self) -> None:
        pass

    def _show(self, notification_id: int, title: str, body: str) -> None:
        raise NotImplementedError


class ConsoleNotifier(Notifier):
    """Prints notifications to the terminal."""

    def _show(self, notification_id: int, title: str, body: str) -> None:
        typer.secho(f"[{title}] {body}", fg=typer.colors.GREEN, bold=True)


class DesktopNotifier(Notifier):
    """Shows notifications with the platform's notifier command."""

    def __init__(self):
        super().__init__()
        self._command: str | None = None

    def _setup(self) -> None:
        """Locate the notifier command.

        Raises:
            NotifierUnavailable: If no supported command is installed.
        """
        if sys.platform == "darwin" and shutil.which("osascript"):
            self._command = "osascript"
        elif shutil.which("notify-send"):
            self._command = "notify-send"
        else:
            raise NotifierUnavailable(
                "No desktop notifier found. Install notify-send (libnotify-bin) "
                "or set notifications.backend = \"console\"."
            )

    def _show(self, notification_id: int, title: str, body: str) -> None:
        if self._command == "osascript":
            script = f"display notification {_applescript_str(body)} with title {_applescript_str(title)}"
            args = ["osascript", "-e", script]
        else:
            args = [
                "notify-send",
                f"--app-name={APP_NAME}",
                # Replaces the previous notification for the same account
                f"--replace-id={notification_id}",
                title,
                body,
            ]

        result = subprocess.run(args, capture_output=True, text=True)
        if result.returncode != 0:
            # notify-send builds without --replace-id exist; retry plainly
            if self._command == "notify-send":
                result = subprocess.run(
                    ["notify-send", f"--app-name={APP_NAME}", title, body],
                    capture_output=True,
                    text=True,
                )
            if result.returncode != 0:
                logger.warning(
                    "Notification failed: %s", result.stderr.strip() or result.returncode
                )


def _applescript_str(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def create_notifier(backend: str = "auto") -> Notifier:
    """Create and initialize a notifier for the named backend.

    Args:
        backend: "desktop", "console", or "auto" (desktop if available).

    Raises:
        NotifierUnavailable: If "desktop" was requested but isn't available.
        ValueError: If the backend name is unknown.
    """
    if backend == "console":
        notifier: Notifier = ConsoleNotifier()
    elif backend == "desktop":
        notifier = DesktopNotifier()
    elif backend == "auto":
        notifier = DesktopNotifier()
        try:
            notifier.init()
        except NotifierUnavailable as e:
            logger.info("%s Falling back to console notifications.", e)
            notifier = ConsoleNotifier()
    else:
        raise ValueError(
            f"Unknown notification backend {backend!r}; use auto, desktop or console"
        )

    notifier.init()
    return notifier
