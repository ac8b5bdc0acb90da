"""File-backed key-value store.

Each key is a file under the store directory holding raw bytes. Files are
written with 600 permissions since they identify the user's accounts.

Store layout:
    ~/.config/gmail-notifier/store/accounts.json
"""

import re
from pathlib import Path

from gmail_notifier.config.paths import STORE_DIR, ensure_private_dir


# Keys become file names, so keep them to a safe character set
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStore:
    """Key-value byte storage in a private directory.

    Example:
        store = FileStore()
        store.write("accounts", b"[]")
        raw = store.read("accounts")  # b"[]"
    """

    def __init__(self, root: Path | None = None):
        """Initialize the store.

        Args:
            root: Directory holding the key files. Defaults to STORE_DIR.
        """
        self._root = root or STORE_DIR

    @property
    def root(self) -> Path:
        """Directory holding the key files."""
        return self._root

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith("."):
            raise ValueError(f"Invalid store key: {key!r}")
        return self._root / f"{key}.json"

    def read(self, key: str) -> bytes | None:
        """Read the value stored under key.

        Returns:
            The stored bytes, or None if nothing is stored.
        """
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def write(self, key: str, data: bytes) -> None:
        """Store bytes under key, replacing any previous value.

        Writes to a temporary file first, then renames it into place.
        """
        ensure_private_dir(self._root)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")

        tmp_path.write_bytes(data)
        tmp_path.chmod(0o600)
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        """Remove the value stored under key, if any."""
        path = self._path(key)
        if path.exists():
            path.unlink()
