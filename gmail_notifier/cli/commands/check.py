"""Check command implementation.

Runs a single unread-count pass over saved accounts.
"""

import typer
from typing_extensions import Annotated

from gmail_notifier.cli.common import open_service, require_account


def check(
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Check one account only")
    ] = None,
):
    """Check unread counts once and notify about new mail."""
    service = open_service()

    if not service.registry.accounts:
        typer.echo("No accounts saved.")
        typer.echo("Add one with: gmail-notifier accounts add")
        return

    if account:
        require_account(service, account)

    result = service.check_now(account)

    for email, count in result.counts.items():
        typer.echo(f"{email}: {count} unread")

    if result.skipped:
        typer.echo(f"Skipped {result.skipped} account(s): sign-in needed.", err=True)

    if result.errors:
        typer.echo(f"Errors ({result.errors}):", err=True)
        for detail in result.error_details:
            typer.echo(f"  {detail}", err=True)
        typer.echo("Run the command again to retry.", err=True)
        raise typer.Exit(1)
