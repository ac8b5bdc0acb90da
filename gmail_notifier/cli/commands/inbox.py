"""Inbox command implementation."""

import json

import typer
from typing_extensions import Annotated

from gmail_notifier.cli.common import open_service, require_account
from gmail_notifier.errors import AuthFailure, FetchError
from gmail_notifier.mail import MessagePreview


def inbox(
    email: Annotated[str, typer.Argument(help="Account email")],
    pages: Annotated[
        int, typer.Option("--pages", "-p", help="Number of pages to load", min=1)
    ] = 1,
    as_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
):
    """List the newest inbox messages, page by page."""
    service = open_service()
    require_account(service, email)

    session = service.open_inbox(email)
    try:
        session.load()
        for _ in range(pages - 1):
            if not session.has_more:
                break
            session.load_more()
    except (AuthFailure, FetchError) as e:
        typer.echo(f"Could not load inbox: {e}", err=True)
        typer.echo("Run the command again to retry.", err=True)
        raise typer.Exit(1)

    previews = session.previews

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "messages": [p.to_dict() for p in previews],
                    "next_page_token": session.next_page_token,
                },
                indent=2,
            )
        )
        return

    if not previews:
        typer.echo("Inbox is empty.")
        return

    for preview in previews:
        _print_preview(preview)

    if session.has_more:
        typer.echo(f"More messages available (use --pages {pages + 1}).")


def _print_preview(preview: MessagePreview) -> None:
    typer.echo(f"[{preview.id}] {preview.subject}")
    typer.echo(f"  From: {preview.from_addr}")
    if preview.snippet:
        typer.echo(f"  {preview.snippet}")
