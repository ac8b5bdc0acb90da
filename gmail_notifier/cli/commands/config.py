"""Config command implementation.

Manages the gmail-notifier configuration file.
"""

import typer
from typing_extensions import Annotated

from gmail_notifier.config import (
    CONFIG_FILE,
    get_client_secret,
    init_config,
    load_config,
    set_config_value,
)
from gmail_notifier.config.paths import CONFIG_DIR

app = typer.Typer(help="Manage configuration", no_args_is_help=True)


@app.command()
def init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config")
    ] = False,
):
    """Initialize configuration directory and template config file."""
    created = init_config(overwrite=force)

    if created:
        typer.echo(f"Created config directory: {CONFIG_DIR}")
        typer.echo(f"Created config file: {CONFIG_FILE}")
        typer.echo()
        typer.echo("Edit the config file to set your OAuth client_id.")
    else:
        typer.echo(f"Config already exists at {CONFIG_FILE}")
        typer.echo("Use --force to overwrite.")


@app.command()
def show():
    """Display current configuration.

    Secrets (like client_secret) are redacted in output.
    """
    config = load_config()

    if not config:
        typer.echo("No configuration found.")
        typer.echo(f"Run 'gmail-notifier config init' to create {CONFIG_FILE}")
        return

    for section, values in config.items():
        if not isinstance(values, dict):
            typer.echo(f"{section} = {values}")
            continue
        typer.echo(f"[{section}]")
        for key, value in values.items():
            if key == "client_secret":
                # Redact secret but indicate it's set
                value = "***REDACTED***" if value else "(not set)"
            typer.echo(f"  {key} = {value}")
        typer.echo()

    if get_client_secret(config) and "client_secret" not in config.get("oauth", {}):
        typer.echo("client_secret: set via environment")


@app.command("set")
def set_value(
    key: Annotated[
        str,
        typer.Argument(
            help="Configuration key (dot notation, e.g., 'defaults.poll_interval')"
        ),
    ],
    value: Annotated[str, typer.Argument(help="Configuration value")],
):
    """Set a configuration value using dot notation.

    Examples:
        gmail-notifier config set defaults.poll_interval 120
        gmail-notifier config set oauth.client_id xxxx.apps.googleusercontent.com
    """
    try:
        set_config_value(key, value)
        typer.echo(f"Set {key} = {value}")
    except ValueError as e:
        typer.echo(f"Invalid value: {e}", err=True)
        raise typer.Exit(1)
