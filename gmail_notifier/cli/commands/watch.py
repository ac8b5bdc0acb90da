"""Watch command implementation.

Polls unread counts in the foreground until interrupted.
"""

import threading

import typer
from typing_extensions import Annotated

from gmail_notifier.accounts import AccountRegistry
from gmail_notifier.cli.common import open_service


def watch(
    interval: Annotated[
        int | None,
        typer.Option("--interval", "-i", help="Seconds between checks", min=1),
    ] = None,
):
    """Poll all saved accounts and notify about new mail. Ctrl-C to stop."""
    service = open_service()

    if not service.registry.accounts:
        typer.echo("No accounts saved.")
        typer.echo("Add one with: gmail-notifier accounts add")
        raise typer.Exit(1)

    if interval is not None:
        service.poller.set_interval(interval)

    last_seen: dict[str, int] = {}

    def print_changes(registry: AccountRegistry) -> None:
        for email, count in registry.unread_counts().items():
            if last_seen.get(email) != count:
                last_seen[email] = count
                typer.echo(f"{email}: {count} unread")

    service.registry.add_observer(print_changes)

    typer.echo(
        f"Watching {len(service.registry.accounts)} account(s) every "
        f"{service.poller.interval}s. Press Ctrl-C to stop."
    )

    stopped = threading.Event()
    service.poller.start()
    try:
        stopped.wait()
    except KeyboardInterrupt:
        typer.echo()
        typer.echo("Stopping...")
    finally:
        service.registry.remove_observer(print_changes)
        service.close()
