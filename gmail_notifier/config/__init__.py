"""Configuration management module.

Handles loading, saving, and accessing the gmail-notifier configuration.
Config is stored at ~/.config/gmail-notifier/config.toml

Usage:
    from gmail_notifier.config import load_config, get_defaults

    config = load_config()
    interval = get_defaults(config)["poll_interval"]
"""

import os
import tomllib

import tomli_w

from .paths import CONFIG_FILE, ensure_config_dir
from .schema import DefaultsConfig, NotifierConfig
from .template import CONFIG_TEMPLATE

__all__ = [
    "load_config",
    "save_config",
    "init_config",
    "get_defaults",
    "get_client_id",
    "get_client_secret",
    "get_notification_backend",
    "set_config_value",
    "CONFIG_FILE",
    "DEFAULTS",
]

# Environment variable for the OAuth client secret.
# Using env var is preferred over storing in config.toml for security.
CLIENT_SECRET_ENV = "GMAIL_NOTIFIER_CLIENT_SECRET"

DEFAULTS: DefaultsConfig = {
    "poll_interval": 60,
    "inbox_page_size": 20,
    "more_page_size": 10,
    "unread_preview_size": 10,
    "fetch_workers": 1,
    "exact_unread_count": False,
    "unread_count_cap": 500,
    "interactive_sign_in": True,
    "log_level": "WARNING",
}

# Module-level cache for loaded config.
# Avoids repeated disk reads during a single CLI invocation.
_cached_config: NotifierConfig | None = None

_POSITIVE_INT_FIELDS = (
    "poll_interval",
    "inbox_page_size",
    "more_page_size",
    "unread_preview_size",
    "fetch_workers",
    "unread_count_cap",
)


def load_config(*, force_reload: bool = False) -> NotifierConfig:
    """Load configuration from disk.

    Returns empty dict if config file doesn't exist.
    Uses module-level caching to avoid repeated disk reads.

    Args:
        force_reload: Bypass cache and read from disk (useful after saving).

    Returns:
        The configuration dictionary.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    if not CONFIG_FILE.exists():
        _cached_config = {}
        return _cached_config

    with open(CONFIG_FILE, "rb") as f:
        _cached_config = tomllib.load(f)

    return _cached_config


def save_config(config: NotifierConfig) -> None:
    """Save configuration to disk.

    Creates config directory if needed. Updates the module cache.

    Args:
        config: The configuration dictionary to save.
    """
    global _cached_config

    ensure_config_dir()

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(config, f)

    _cached_config = config


def init_config(*, overwrite: bool = False) -> bool:
    """Initialize config directory and create template config file.

    Args:
        overwrite: If True, overwrite existing config file.

    Returns:
        True if config was created, False if it already existed.
    """
    ensure_config_dir()

    if CONFIG_FILE.exists() and not overwrite:
        return False

    CONFIG_FILE.write_text(CONFIG_TEMPLATE)
    return True


def get_defaults(config: NotifierConfig) -> DefaultsConfig:
    """Get the [defaults] section merged over built-in defaults.

    Raises:
        ValueError: If an interval, size or limit is not a positive integer.
    """
    merged: DefaultsConfig = {**DEFAULTS, **config.get("defaults", {})}

    for key in _POSITIVE_INT_FIELDS:
        value = merged[key]
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(
                f"defaults.{key} must be a positive integer, got {value!r}"
            )

    return merged


def get_client_id(config: NotifierConfig) -> str | None:
    """Get the OAuth client ID, or None if not configured."""
    return config.get("oauth", {}).get("client_id") or None


def get_client_secret(config: NotifierConfig) -> str | None:
    """Get client secret from environment variable or config.

    Environment variable takes precedence for security - secrets in
    environment variables are less likely to be accidentally committed.
    """
    return os.environ.get(CLIENT_SECRET_ENV) or config.get("oauth", {}).get(
        "client_secret"
    )


def get_notification_backend(config: NotifierConfig) -> str:
    """Get the configured notification backend name."""
    return config.get("notifications", {}).get("backend", "auto")


def set_config_value(key: str, value: str) -> None:
    """Set a configuration value using dot notation.

    Examples:
        set_config_value("defaults.poll_interval", "120")
        set_config_value("oauth.client_id", "xxx.apps.googleusercontent.com")

    Args:
        key: Dot-separated key path (e.g., "defaults.poll_interval").
        value: Value to set (will be type-converted for known fields).

    Raises:
        ValueError: If value cannot be converted to expected type.
    """
    config = load_config(force_reload=True)

    parts = key.split(".")

    # Navigate to parent dict, creating intermediate dicts as needed
    current: dict = config
    for part in parts[:-1]:
        if part not in current:
            current[part] = {}
        current = current[part]

    final_key = parts[-1]
    current[final_key] = _convert_value(final_key, value)

    save_config(config)


def _convert_value(key: str, value: str) -> str | int | bool:
    """Convert string value to appropriate type based on field name.

    Known integer and boolean fields are converted, everything else stays str.

    Raises:
        ValueError: If value cannot be converted to expected type.
    """
    bool_fields = {"exact_unread_count", "interactive_sign_in"}

    if key in _POSITIVE_INT_FIELDS:
        return int(value)

    if key in bool_fields:
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1", "on"):
            return True
        if lowered in ("false", "no", "0", "off"):
            return False
        raise ValueError(f"{key} expects true or false, got {value!r}")

    return value
