"""Path constants and directory utilities for gmail-notifier config.

Follows the XDG Base Directory specification:
- Config: ~/.config/gmail-notifier/
- Credentials: ~/.config/gmail-notifier/credentials/ (restricted permissions)
- Store: ~/.config/gmail-notifier/store/ (saved account list)
"""

from pathlib import Path


CONFIG_DIR = Path.home() / ".config" / "gmail-notifier"
CONFIG_FILE = CONFIG_DIR / "config.toml"

# One OAuth token file per signed-in account
CREDENTIALS_DIR = CONFIG_DIR / "credentials"

# Key-value store for the saved account list
STORE_DIR = CONFIG_DIR / "store"


def ensure_config_dir() -> Path:
    """Create config directory if it doesn't exist.

    Returns the config directory path.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


def ensure_private_dir(path: Path) -> Path:
    """Create a directory readable only by its owner (700).

    Used for the credentials and store directories, which hold tokens
    and account identifiers.

    Returns the directory path.
    """
    path.mkdir(parents=True, exist_ok=True)
    path.chmod(0o700)
    return path
