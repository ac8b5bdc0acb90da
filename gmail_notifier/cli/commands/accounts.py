"""Accounts command implementation.

Adds, removes and lists the Gmail accounts being watched.
"""

import typer
from typing_extensions import Annotated

from gmail_notifier.cli.common import open_service
from gmail_notifier.errors import AuthFailure

app = typer.Typer(help="Manage watched Gmail accounts", no_args_is_help=True)


@app.command("list")
def list_accounts():
    """List saved accounts in display order."""
    service = open_service()
    accounts = service.registry.accounts

    if not accounts:
        typer.echo("No accounts saved.")
        typer.echo("Add one with: gmail-notifier accounts add")
        return

    for account in accounts:
        typer.echo(account.email)


@app.command()
def add():
    """Sign in to a Gmail account and start watching it.

    Opens a browser for you to pick the account and grant read-only
    access. Tokens are cached locally for future use.
    """
    service = open_service()

    typer.echo("Opening browser for Google sign-in...")
    try:
        identity = service.add_account()
    except AuthFailure as e:
        typer.echo(f"Sign-in failed: {e.reason}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Watching {identity.email}")
    typer.echo(f"  Unread: {service.registry.unread_count(identity.email)}")


@app.command()
def remove(
    email: Annotated[str, typer.Argument(help="Email of the account to remove")],
):
    """Stop watching an account and delete its cached token."""
    service = open_service()

    if service.remove_account(email):
        typer.echo(f"Removed {email}")
    else:
        typer.echo(f"Account '{email}' not found.")
