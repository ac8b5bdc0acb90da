"""Tests for the account registry and its persistence."""

import json
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gmail_notifier.accounts import ACCOUNTS_KEY, AccountRegistry, SavedAccount
from gmail_notifier.storage import FileStore


@dataclass
class FakeIdentity:
    email: str
    id: str


@pytest.fixture
def store(tmp_path: Path) -> FileStore:
    """Create a FileStore in a temporary directory."""
    return FileStore(tmp_path / "store")


@pytest.fixture
def registry(store: FileStore) -> AccountRegistry:
    """Create a loaded, empty registry."""
    registry = AccountRegistry(store)
    registry.load()
    return registry


def stored_accounts(store: FileStore) -> list[dict]:
    return json.loads(store.read(ACCOUNTS_KEY))


class TestLoad:
    """Tests for loading the saved account list."""

    def test_missing_data_gives_empty_registry(self, registry: AccountRegistry):
        assert registry.accounts == ()

    def test_loads_saved_accounts_in_order(self, store: FileStore):
        store.write(
            ACCOUNTS_KEY,
            json.dumps(
                [{"email": "b@x.com", "id": "2"}, {"email": "a@x.com", "id": "1"}]
            ).encode(),
        )
        registry = AccountRegistry(store)

        registry.load()

        assert registry.accounts == (
            SavedAccount("b@x.com", "2"),
            SavedAccount("a@x.com", "1"),
        )
        assert registry.unread_count("b@x.com") == 0

    @pytest.mark.parametrize(
        "raw",
        [
            b"not json",
            b'{"email": "a@x.com"}',
            b'[{"email": "a@x.com"}]',
            b'["a@x.com"]',
            b"\xff\xfe",
        ],
    )
    def test_corrupt_data_gives_empty_registry(self, store: FileStore, raw: bytes):
        """Unreadable data is treated as empty rather than raised."""
        store.write(ACCOUNTS_KEY, raw)
        registry = AccountRegistry(store)

        registry.load()

        assert registry.accounts == ()

    def test_load_notifies_observers(self, store: FileStore):
        registry = AccountRegistry(store)
        observer = MagicMock()
        registry.add_observer(observer)

        registry.load()

        observer.assert_called_once_with(registry)


class TestAddAccount:
    """Tests for add_account."""

    def test_adds_and_persists(self, registry: AccountRegistry, store: FileStore):
        added = registry.add_account(FakeIdentity("a@x.com", "1"))

        assert added is True
        assert registry.accounts == (SavedAccount("a@x.com", "1"),)
        assert registry.unread_count("a@x.com") == 0
        assert stored_accounts(store) == [{"email": "a@x.com", "id": "1"}]

    def test_duplicate_email_is_noop(self, registry: AccountRegistry, store: FileStore):
        """Adding an already saved email changes nothing."""
        registry.add_account(FakeIdentity("a@x.com", "1"))
        registry.set_unread_count("a@x.com", 4)
        observer = MagicMock()
        registry.add_observer(observer)

        added = registry.add_account(FakeIdentity("a@x.com", "other"))

        assert added is False
        assert len(registry.accounts) == 1
        assert registry.unread_count("a@x.com") == 4
        assert stored_accounts(store) == [{"email": "a@x.com", "id": "1"}]
        observer.assert_not_called()

    def test_keeps_insertion_order(self, registry: AccountRegistry):
        registry.add_account(FakeIdentity("b@x.com", "2"))
        registry.add_account(FakeIdentity("a@x.com", "1"))

        assert [a.email for a in registry.accounts] == ["b@x.com", "a@x.com"]

    def test_observer_sees_new_account(self, registry: AccountRegistry):
        """Observers run after the mutation is applied."""
        seen = []
        registry.add_observer(lambda r: seen.append(r.has_account("a@x.com")))

        registry.add_account(FakeIdentity("a@x.com", "1"))

        assert seen == [True]

    def test_survives_reload(self, registry: AccountRegistry, store: FileStore):
        registry.add_account(FakeIdentity("a@x.com", "1"))

        reloaded = AccountRegistry(store)
        reloaded.load()

        assert reloaded.accounts == (SavedAccount("a@x.com", "1"),)


class TestRemoveAccount:
    """Tests for remove_account."""

    def test_removes_account_and_count(
        self, registry: AccountRegistry, store: FileStore
    ):
        registry.add_account(FakeIdentity("a@x.com", "1"))
        registry.add_account(FakeIdentity("b@x.com", "2"))
        registry.set_unread_count("a@x.com", 3)

        removed = registry.remove_account("a@x.com")

        assert removed is True
        assert [a.email for a in registry.accounts] == ["b@x.com"]
        assert "a@x.com" not in registry.unread_counts()
        assert stored_accounts(store) == [{"email": "b@x.com", "id": "2"}]

    def test_missing_account_is_noop(self, registry: AccountRegistry):
        """Removing an unknown email neither fails nor notifies."""
        registry.add_account(FakeIdentity("a@x.com", "1"))
        observer = MagicMock()
        registry.add_observer(observer)

        removed = registry.remove_account("nobody@x.com")

        assert removed is False
        assert len(registry.accounts) == 1
        observer.assert_not_called()


class TestSetUnreadCount:
    """Tests for set_unread_count."""

    def test_sets_count_and_notifies(self, registry: AccountRegistry):
        registry.add_account(FakeIdentity("a@x.com", "1"))
        seen = []
        registry.add_observer(lambda r: seen.append(r.unread_count("a@x.com")))

        applied = registry.set_unread_count("a@x.com", 7)

        assert applied is True
        assert seen == [7]

    def test_does_not_persist_counts(self, registry: AccountRegistry, store: FileStore):
        registry.add_account(FakeIdentity("a@x.com", "1"))

        registry.set_unread_count("a@x.com", 7)

        reloaded = AccountRegistry(store)
        reloaded.load()
        assert reloaded.unread_count("a@x.com") == 0

    def test_ignores_removed_account(self, registry: AccountRegistry):
        """A late result for a removed account is dropped."""
        registry.add_account(FakeIdentity("a@x.com", "1"))
        registry.remove_account("a@x.com")

        applied = registry.set_unread_count("a@x.com", 5)

        assert applied is False
        assert registry.unread_counts() == {}

    def test_stale_pass_does_not_overwrite_newer(self, registry: AccountRegistry):
        """Results applied out of order keep the newest pass's count."""
        registry.add_account(FakeIdentity("a@x.com", "1"))

        assert registry.set_unread_count("a@x.com", 9, pass_seq=2) is True
        assert registry.set_unread_count("a@x.com", 4, pass_seq=1) is False

        assert registry.unread_count("a@x.com") == 9

    def test_latest_value_wins_in_order(self, registry: AccountRegistry):
        registry.add_account(FakeIdentity("a@x.com", "1"))

        for seq, count in enumerate([3, 1, 8, 0], start=1):
            registry.set_unread_count("a@x.com", count, pass_seq=seq)

        assert registry.unread_count("a@x.com") == 0

    def test_rejects_negative_count(self, registry: AccountRegistry):
        registry.add_account(FakeIdentity("a@x.com", "1"))

        with pytest.raises(ValueError):
            registry.set_unread_count("a@x.com", -1)


class TestFileStore:
    """Tests for the file-backed store."""

    def test_read_missing_key(self, store: FileStore):
        assert store.read("accounts") is None

    def test_write_then_read(self, store: FileStore):
        store.write("accounts", b"[]")

        assert store.read("accounts") == b"[]"

    def test_files_are_private(self, store: FileStore):
        store.write("accounts", b"[]")

        path = store.root / "accounts.json"
        assert path.stat().st_mode & 0o777 == 0o600
        assert store.root.stat().st_mode & 0o777 == 0o700

    def test_delete(self, store: FileStore):
        store.write("accounts", b"[]")

        store.delete("accounts")
        store.delete("accounts")

        assert store.read("accounts") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden"])
    def test_rejects_unsafe_keys(self, store: FileStore, key: str):
        with pytest.raises(ValueError):
            store.read(key)
