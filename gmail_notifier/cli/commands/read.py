"""Read command implementation."""

import json
from enum import Enum

import typer
from typing_extensions import Annotated

from gmail_notifier.cli.common import open_service, require_account
from gmail_notifier.errors import AuthFailure, FetchError
from gmail_notifier.mail import EmailDetail


class OutputFormat(str, Enum):
    """Ways to print a message."""
    text = "text"
    html = "html"
    json = "json"
    headers = "headers"


def read(
    email: Annotated[str, typer.Argument(help="Account email")],
    message_id: Annotated[str, typer.Argument(help="Message ID to read")],
    format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.text,
):
    """Display headers and body of a message."""
    service = open_service()
    require_account(service, email)

    try:
        detail = service.fetcher.get_email_detail(email, message_id)
    except (AuthFailure, FetchError) as e:
        typer.echo(f"Could not load message: {e}", err=True)
        typer.echo("Run the command again to retry.", err=True)
        raise typer.Exit(1)

    if format == OutputFormat.json:
        typer.echo(json.dumps(detail.to_dict(), indent=2))
        return

    _print_headers(detail)
    if format == OutputFormat.headers:
        return

    typer.echo()
    if format == OutputFormat.html:
        typer.echo(detail.body_html or "(no HTML body)")
    else:
        typer.echo(detail.body_text or "(no text body; try --format html)")


def _print_headers(detail: EmailDetail) -> None:
    typer.echo(f"Subject: {detail.subject}")
    typer.echo(f"From: {detail.from_addr}")
    typer.echo(f"To: {detail.to}")
    if detail.cc:
        typer.echo(f"Cc: {detail.cc}")
    if detail.bcc:
        typer.echo(f"Bcc: {detail.bcc}")
    typer.echo(f"Date: {detail.date}")
