"""Account registry.

Holds the ordered list of saved accounts and the last unread count seen
for each one. The account list is persisted through a key-value store as
a JSON array of {"email", "id"} objects; unread counts live only in
memory and start at 0 every session.

Every mutation notifies registered observers after the new state is in
place, so an observer always sees the change it is being told about.
"""

import json
import logging
import threading
from collections.abc import Callable
from typing import Protocol

from gmail_notifier.errors import StorageCorrupt

from .models import SavedAccount

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = "accounts"

Observer = Callable[["AccountRegistry"], None]


class KeyValueStore(Protocol):
    def read(self, key: str) -> bytes | None: ...

    def write(self, key: str, data: bytes) -> None: ...


class HasIdentity(Protocol):
    email: str
    id: str


class AccountRegistry:
    """Saved accounts plus session-only unread counts.

    Safe to use from the poller thread and the CLI thread at once: state is
    guarded by a re-entrant lock and observers run outside of it.

    Example:
        registry = AccountRegistry(FileStore())
        registry.load()
        registry.add_account(identity)
        registry.set_unread_count(identity.email, 3)
    """

    def __init__(self, store: KeyValueStore):
        """Initialize an empty registry.

        Args:
            store: Persistent store used for the account list.
        """
        self._store = store
        self._lock = threading.RLock()
        self._accounts: list[SavedAccount] = []
        self._unread: dict[str, int] = {}
        # Sequence number of the last applied count per email
        self._applied_seq: dict[str, int] = {}
        self._observers: list[Observer] = []

    @property
    def accounts(self) -> tuple[SavedAccount, ...]:
        """Snapshot of saved accounts in display order."""
        with self._lock:
            return tuple(self._accounts)

    def has_account(self, email: str) -> bool:
        with self._lock:
            return any(a.email == email for a in self._accounts)

    def unread_count(self, email: str) -> int:
        """Last known unread count for email, 0 if never checked."""
        with self._lock:
            return self._unread.get(email, 0)

    def unread_counts(self) -> dict[str, int]:
        """Copy of all last known unread counts."""
        with self._lock:
            return dict(self._unread)

    def add_observer(self, observer: Observer) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: Observer) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def load(self) -> None:
        """Load the saved account list from the store.

        Missing data gives an empty registry. Malformed data is logged and
        also gives an empty registry; it is never raised to the caller.
        """
        raw = self._store.read(ACCOUNTS_KEY)

        try:
            accounts = _decode_accounts(raw) if raw is not None else []
        except StorageCorrupt as e:
            logger.warning("Saved account list is unreadable, starting empty: %s", e)
            accounts = []

        with self._lock:
            self._accounts = accounts
            self._unread = {a.email: 0 for a in accounts}
            self._applied_seq = {}

        logger.debug("Loaded %d saved account(s)", len(accounts))
        self._notify()

    def add_account(self, identity: HasIdentity) -> bool:
        """Add an account from a signed-in identity.

        Adding an email that is already saved does nothing.

        Args:
            identity: Object with `email` and `id` attributes.

        Returns:
            True if the account was added, False if it already existed.
        """
        account = SavedAccount(email=identity.email, id=identity.id)

        with self._lock:
            if any(a.email == account.email for a in self._accounts):
                return False
            self._accounts.append(account)
            self._unread.setdefault(account.email, 0)
            self._persist()

        logger.info("Added account %s", account.email)
        self._notify()
        return True

    def remove_account(self, email: str) -> bool:
        """Remove an account and its unread count.

        Removing an email that isn't saved does nothing.

        Returns:
            True if the account was removed.
        """
        with self._lock:
            remaining = [a for a in self._accounts if a.email != email]
            if len(remaining) == len(self._accounts):
                return False
            self._accounts = remaining
            self._unread.pop(email, None)
            self._applied_seq.pop(email, None)
            self._persist()

        logger.info("Removed account %s", email)
        self._notify()
        return True

    def set_unread_count(
        self, email: str, count: int, pass_seq: int | None = None
    ) -> bool:
        """Record the latest unread count for an account.

        Counts are not persisted. A count is dropped when the account has
        been removed in the meantime, or when pass_seq is older than the
        sequence of the last count applied for this email.

        Args:
            email: Account email.
            count: Unread count, must be >= 0.
            pass_seq: Sequence number of the poll pass that produced count.

        Returns:
            True if the count was applied.

        Raises:
            ValueError: If count is negative.
        """
        if count < 0:
            raise ValueError(f"Unread count must be >= 0, got {count}")

        with self._lock:
            if not any(a.email == email for a in self._accounts):
                logger.debug("Dropping unread count for removed account %s", email)
                return False

            if pass_seq is not None:
                last_seq = self._applied_seq.get(email)
                if last_seq is not None and pass_seq < last_seq:
                    logger.debug(
                        "Dropping stale unread count for %s (pass %d < %d)",
                        email,
                        pass_seq,
                        last_seq,
                    )
                    return False
                self._applied_seq[email] = pass_seq

            self._unread[email] = count

        self._notify()
        return True

    def _persist(self) -> None:
        raw = json.dumps([a.to_dict() for a in self._accounts])
        self._store.write(ACCOUNTS_KEY, raw.encode("utf-8"))

    def _notify(self) -> None:
        for observer in list(self._observers):
            observer(self)


def _decode_accounts(raw: bytes) -> list[SavedAccount]:
    """Parse the stored JSON account list.

    Duplicate emails keep their first entry.

    Raises:
        StorageCorrupt: If the data isn't a JSON list of account objects.
    """
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StorageCorrupt(f"invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise StorageCorrupt(f"expected a list, got {type(data).__name__}")

    accounts: list[SavedAccount] = []
    seen: set[str] = set()
    for entry in data:
        if not isinstance(entry, dict):
            raise StorageCorrupt(f"expected an object, got {entry!r}")
        try:
            account = SavedAccount.from_dict(entry)
        except ValueError as e:
            raise StorageCorrupt(str(e)) from e
        if account.email in seen:
            continue
        seen.add(account.email)
        accounts.append(account)

    return accounts
