"""Main CLI entry point for gmail-notifier."""

import logging

import typer
from typing_extensions import Annotated

from gmail_notifier import __version__
from gmail_notifier.cli import commands
from gmail_notifier.config import DEFAULTS, load_config

app = typer.Typer(
    name="gmail-notifier",
    help="Watch several Gmail accounts and get notified about new unread mail",
    no_args_is_help=True,
)

# Register command groups
app.add_typer(commands.accounts.app, name="accounts")
app.add_typer(commands.config.app, name="config")

# Single commands
app.command("check")(commands.check.check)
app.command("watch")(commands.watch.watch)
app.command("inbox")(commands.inbox.inbox)
app.command("read")(commands.read.read)
app.command("unread")(commands.unread.unread)


@app.callback()
def configure_logging(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging")
    ] = False,
):
    """Watch several Gmail accounts and get notified about new unread mail."""
    if verbose:
        level = logging.DEBUG
    else:
        try:
            level_name = load_config().get("defaults", {}).get(
                "log_level", DEFAULTS["log_level"]
            )
        except (OSError, ValueError):
            level_name = DEFAULTS["log_level"]
        level = logging.getLevelName(str(level_name).upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version():
    """Show version information."""
    typer.echo(f"gmail-notifier version {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
