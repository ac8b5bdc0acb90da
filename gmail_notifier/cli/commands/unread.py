"""Unread command implementation."""

import typer
from typing_extensions import Annotated

from gmail_notifier.cli.common import open_service, require_account
from gmail_notifier.errors import AuthFailure, FetchError


def unread(
    email: Annotated[str, typer.Argument(help="Account email")],
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", help="Number of messages to show", min=1),
    ] = None,
):
    """Show sender, subject and snippet of the newest unread messages."""
    service = open_service()
    require_account(service, email)

    limit = limit or service.defaults["unread_preview_size"]
    try:
        previews = service.fetcher.unread_preview(email, limit=limit)
    except (AuthFailure, FetchError) as e:
        typer.echo(f"Could not load unread messages: {e}", err=True)
        typer.echo("Run the command again to retry.", err=True)
        raise typer.Exit(1)

    if not previews:
        typer.echo("No unread messages.")
        return

    for preview in previews:
        typer.echo(f"From: {preview.from_addr}")
        typer.echo(f"Subject: {preview.subject}")
        typer.echo(f"Snippet: {preview.snippet}")
        typer.echo("---")
