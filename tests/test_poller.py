"""Tests for the unread-count poller."""

import threading
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gmail_notifier.accounts import AccountRegistry
from gmail_notifier.errors import AuthFailure
from gmail_notifier.mail import MessagePage
from gmail_notifier.mail.gmail import HttpError
from gmail_notifier.notify import notification_id
from gmail_notifier.poll import UnreadPoller
from gmail_notifier.storage import FileStore


@dataclass
class FakeIdentity:
    email: str
    id: str


def http_error(status: int) -> HttpError:
    mock_resp = MagicMock()
    mock_resp.status = status
    return HttpError(mock_resp, b"error")


def unread_page(count: int) -> MessagePage:
    return MessagePage(ids=[f"u{i}" for i in range(count)])


@pytest.fixture
def registry(tmp_path: Path) -> AccountRegistry:
    """Create a registry with two saved accounts, a then b."""
    registry = AccountRegistry(FileStore(tmp_path / "store"))
    registry.load()
    registry.add_account(FakeIdentity("a@x.com", "1"))
    registry.add_account(FakeIdentity("b@x.com", "2"))
    return registry


@pytest.fixture
def clients() -> dict[str, MagicMock]:
    """One mock Gmail client per account."""
    return {"a@x.com": MagicMock(), "b@x.com": MagicMock()}


@pytest.fixture
def tokens() -> MagicMock:
    """Token manager whose credentials are just the account email."""
    tokens = MagicMock()
    tokens.get_credentials.side_effect = lambda email: email
    return tokens


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock()


@pytest.fixture
def poller(registry, tokens, notifier, clients) -> UnreadPoller:
    poller = UnreadPoller(
        registry,
        tokens,
        notifier,
        client_factory=lambda creds: clients[creds],
        interval=3600,
    )
    yield poller
    poller.stop(timeout=5)


class TestPollOnce:
    """Tests for a single poll pass."""

    def test_notifies_only_on_increase(self, poller, registry, clients, notifier):
        """a goes 2 -> 5 and is notified; b stays at 0 and is not."""
        registry.set_unread_count("a@x.com", 2)
        clients["a@x.com"].list_message_ids.return_value = unread_page(5)
        clients["b@x.com"].list_message_ids.return_value = unread_page(0)

        result = poller.poll_once()

        notifier.show.assert_called_once_with(
            notification_id("a@x.com"), "New mail (a@x.com)", "3 new unread emails"
        )
        assert registry.unread_counts() == {"a@x.com": 5, "b@x.com": 0}
        assert result.checked == 2
        assert result.notified == 1
        assert result.counts == {"a@x.com": 5, "b@x.com": 0}

    def test_singular_message_text(self, poller, clients, notifier):
        clients["a@x.com"].list_message_ids.return_value = unread_page(1)
        clients["b@x.com"].list_message_ids.return_value = unread_page(0)

        poller.poll_once()

        assert notifier.show.call_args.args[2] == "1 new unread email"

    @pytest.mark.parametrize("new_count", [4, 3])
    def test_no_notification_when_count_same_or_lower(
        self, poller, registry, clients, notifier, new_count
    ):
        registry.set_unread_count("a@x.com", 4)
        clients["a@x.com"].list_message_ids.return_value = unread_page(new_count)
        clients["b@x.com"].list_message_ids.return_value = unread_page(0)

        poller.poll_once()

        notifier.show.assert_not_called()
        assert registry.unread_count("a@x.com") == new_count

    def test_queries_unread_first_page(self, poller, clients):
        clients["a@x.com"].list_message_ids.return_value = unread_page(0)
        clients["b@x.com"].list_message_ids.return_value = unread_page(0)

        poller.poll_once()

        clients["a@x.com"].list_message_ids.assert_called_once_with(query="is:unread")
        clients["a@x.com"].list_messages.assert_not_called()

    def test_accounts_checked_in_registry_order(self, poller, clients, tokens):
        clients["a@x.com"].list_message_ids.return_value = unread_page(0)
        clients["b@x.com"].list_message_ids.return_value = unread_page(0)

        poller.poll_once()

        emails = [call.args[0] for call in tokens.get_credentials.call_args_list]
        assert emails == ["a@x.com", "b@x.com"]

    def test_only_checks_one_account(self, poller, clients, tokens):
        clients["b@x.com"].list_message_ids.return_value = unread_page(2)

        result = poller.poll_once(only="b@x.com")

        tokens.get_credentials.assert_called_once_with("b@x.com")
        assert result.counts == {"b@x.com": 2}

    def test_auth_failure_skips_account(self, poller, registry, clients, tokens):
        """An account without a token is skipped, the rest still checked."""

        def get_credentials(email):
            if email == "a@x.com":
                raise AuthFailure(email, "sign-in cancelled")
            return email

        tokens.get_credentials.side_effect = get_credentials
        clients["b@x.com"].list_message_ids.return_value = unread_page(2)

        result = poller.poll_once()

        assert result.skipped == 1
        assert result.errors == 0
        assert registry.unread_counts() == {"a@x.com": 0, "b@x.com": 2}
        clients["a@x.com"].list_message_ids.assert_not_called()

    def test_unauthorized_refreshes_without_requery(
        self, poller, registry, clients, tokens, notifier
    ):
        """A 401 refreshes the token; the count waits for the next pass."""
        registry.set_unread_count("a@x.com", 3)
        clients["a@x.com"].list_message_ids.side_effect = http_error(401)
        clients["b@x.com"].list_message_ids.return_value = unread_page(0)

        result = poller.poll_once()

        tokens.refresh.assert_called_once_with("a@x.com")
        assert clients["a@x.com"].list_message_ids.call_count == 1
        assert registry.unread_count("a@x.com") == 3
        assert result.errors == 1
        assert result.error_details == ["a@x.com: token expired"]
        notifier.show.assert_not_called()

    def test_http_error_does_not_stop_pass(self, poller, registry, clients, tokens):
        clients["a@x.com"].list_message_ids.side_effect = http_error(500)
        clients["b@x.com"].list_message_ids.return_value = unread_page(2)

        result = poller.poll_once()

        assert result.error_details == ["a@x.com: HTTP 500"]
        assert registry.unread_count("b@x.com") == 2
        tokens.refresh.assert_not_called()

    def test_unexpected_error_does_not_stop_pass(self, poller, registry, clients):
        clients["a@x.com"].list_message_ids.side_effect = ConnectionError("reset")
        clients["b@x.com"].list_message_ids.return_value = unread_page(1)

        result = poller.poll_once()

        assert result.errors == 1
        assert registry.unread_count("b@x.com") == 1

    def test_removed_during_pass_is_not_applied(
        self, poller, registry, clients, notifier
    ):
        """Counts for an account removed mid-pass are dropped."""

        def list_and_remove(**kwargs):
            registry.remove_account("a@x.com")
            return unread_page(4)

        clients["a@x.com"].list_message_ids.side_effect = list_and_remove
        clients["b@x.com"].list_message_ids.return_value = unread_page(0)

        poller.poll_once()

        assert registry.unread_counts() == {"b@x.com": 0}
        notifier.show.assert_not_called()

    def test_exact_count_follows_pages(self, registry, tokens, notifier, clients):
        poller = UnreadPoller(
            registry,
            tokens,
            notifier,
            client_factory=lambda creds: clients[creds],
            exact_count=True,
            count_cap=200,
        )
        clients["a@x.com"].list_messages.return_value = [f"u{i}" for i in range(150)]
        clients["b@x.com"].list_messages.return_value = []

        poller.poll_once()

        clients["a@x.com"].list_messages.assert_called_once_with(
            query="is:unread", max_results=200
        )
        assert registry.unread_count("a@x.com") == 150


class TestScheduling:
    """Tests for start/stop and interval changes."""

    @pytest.fixture
    def passes(self, poller) -> threading.Semaphore:
        """Replace poll_once with a stub that signals each pass."""
        signal = threading.Semaphore(0)
        poller.poll_once = MagicMock(side_effect=lambda: signal.release())
        return signal

    def test_start_runs_immediate_pass(self, poller, passes):
        poller.start()

        assert passes.acquire(timeout=5)
        assert poller.running is True

    def test_start_twice_keeps_one_thread(self, poller, passes):
        poller.start()
        thread = poller._thread
        poller.start()

        assert poller._thread is thread
        assert passes.acquire(timeout=5)
        # Long interval: no second pass from a second thread
        assert not passes.acquire(timeout=0.2)

    def test_stop_is_idempotent(self, poller, passes):
        poller.start()
        assert passes.acquire(timeout=5)

        poller.stop(timeout=5)
        poller.stop(timeout=5)

        assert poller.running is False

    def test_stop_before_start(self, poller):
        poller.stop()

        assert poller.running is False

    def test_restart_runs_another_immediate_pass(self, poller, passes):
        poller.start()
        assert passes.acquire(timeout=5)
        poller.stop(timeout=5)

        poller.start()

        assert passes.acquire(timeout=5)
        assert poller.poll_once.call_count == 2

    def test_set_interval_while_running_restarts(self, poller, passes):
        """Changing the interval restarts polling with an immediate pass."""
        poller.start()
        assert passes.acquire(timeout=5)

        poller.set_interval(1800)

        assert passes.acquire(timeout=5)
        assert poller.interval == 1800
        assert poller.running is True

    def test_set_interval_while_stopped(self, poller, passes):
        poller.set_interval(30)

        assert poller.interval == 30
        assert poller.running is False
        assert not passes.acquire(timeout=0.2)

    @pytest.mark.parametrize("seconds", [0, -5])
    def test_rejects_non_positive_interval(self, poller, seconds):
        with pytest.raises(ValueError):
            poller.set_interval(seconds)

        assert poller.interval == 3600

    def test_constructor_rejects_non_positive_interval(self, registry, tokens, notifier):
        with pytest.raises(ValueError):
            UnreadPoller(registry, tokens, notifier, interval=0)

    def test_failed_pass_keeps_polling(self, registry, tokens, notifier):
        """An exception escaping a pass doesn't kill the worker thread."""
        poller = UnreadPoller(registry, tokens, notifier, interval=1)
        signal = threading.Semaphore(0)

        def failing_pass():
            signal.release()
            raise RuntimeError("boom")

        poller.poll_once = MagicMock(side_effect=failing_pass)
        try:
            poller.start()
            assert signal.acquire(timeout=5)
            assert signal.acquire(timeout=5)
        finally:
            poller.stop(timeout=5)
