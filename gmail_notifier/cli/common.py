"""Helpers shared by CLI commands."""

import typer

from gmail_notifier.config import load_config
from gmail_notifier.errors import AuthFailure, NotifierUnavailable
from gmail_notifier.service import NotifierService


def open_service() -> NotifierService:
    """Build the service from config, exiting with a message on failure."""
    try:
        return NotifierService.from_config(load_config())
    except (AuthFailure, NotifierUnavailable, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Run 'gmail-notifier config init' and edit the config file.", err=True)
        raise typer.Exit(1)


def require_account(service: NotifierService, email: str) -> None:
    """Exit with an error unless email is a saved account."""
    if service.get_account(email) is None:
        typer.echo(f"Account '{email}' not found.", err=True)
        typer.echo("Add it with: gmail-notifier accounts add", err=True)
        raise typer.Exit(1)
