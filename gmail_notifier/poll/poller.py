"""Unread-count poller.

On a fixed interval, checks each saved account's unread count, stores it in
the registry, and shows a notification when the count went up since the
previous check.

A pass visits accounts one at a time in registry order so the credential
provider never has to juggle several interactive prompts. A failure on one
account is logged and the pass moves on to the next.
"""

import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from google.oauth2.credentials import Credentials

from gmail_notifier.accounts import AccountRegistry
from gmail_notifier.auth.tokens import TokenManager
from gmail_notifier.errors import AuthFailure
from gmail_notifier.mail.gmail import GmailClient, HttpError, http_status
from gmail_notifier.mail.inbox import UNREAD_QUERY
from gmail_notifier.notify import Notifier, notification_id

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60

# Upper bound on unread ids counted when following page tokens
DEFAULT_COUNT_CAP = 500

ClientFactory = Callable[[Credentials], GmailClient]


@dataclass
class PassResult:
    """Result of one poll pass over all accounts."""

    seq: int
    checked: int = 0
    notified: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[str] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    def add_error(self, email: str, error: str) -> None:
        """Record an error for a specific account."""
        self.errors += 1
        self.error_details.append(f"{email}: {error}")


class UnreadPoller:
    """Polls unread counts for every saved account.

    start() runs a pass immediately on a background thread and then one
    every `interval` seconds until stop(). Passes never overlap: a pass
    requested while another is running waits for it to finish.

    Example:
        poller = UnreadPoller(registry, tokens, notifier, interval=60)
        poller.start()
        ...
        poller.stop()
    """

    def __init__(
        self,
        registry: AccountRegistry,
        tokens: TokenManager,
        notifier: Notifier,
        client_factory: ClientFactory = GmailClient,
        interval: int = DEFAULT_INTERVAL,
        exact_count: bool = False,
        count_cap: int = DEFAULT_COUNT_CAP,
    ):
        """Initialize a stopped poller.

        Args:
            registry: Accounts to poll and where counts are stored.
            tokens: Token cache for per-account credentials.
            notifier: Initialized notification backend.
            client_factory: Builds a GmailClient from credentials.
            interval: Seconds between passes, must be positive.
            exact_count: Follow page tokens instead of counting the first
                page of unread ids only.
            count_cap: Maximum ids counted in exact mode.
        """
        _check_interval(interval)
        self._registry = registry
        self._tokens = tokens
        self._notifier = notifier
        self._client_factory = client_factory
        self._interval = interval
        self._exact_count = exact_count
        self._count_cap = count_cap

        self._state_lock = threading.Lock()
        self._pass_lock = threading.Lock()
        self._seq = itertools.count(1)
        self._thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

    @property
    def running(self) -> bool:
        with self._state_lock:
            return self._thread is not None

    @property
    def interval(self) -> int:
        return self._interval

    def start(self) -> None:
        """Start polling. Does nothing if already running."""
        with self._state_lock:
            if self._thread is not None:
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="unread-poller",
                daemon=True,
            )
            self._stop_event = stop_event
            self._thread = thread

        logger.info("Polling every %d seconds", self._interval)
        thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop scheduling passes. Does nothing if already stopped.

        A pass in progress is not interrupted; its results are still
        applied if the accounts still exist.

        Args:
            timeout: If given, wait up to this many seconds for the worker
                thread to finish its current pass.
        """
        with self._state_lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None

        if thread is None:
            return

        stop_event.set()
        logger.info("Polling stopped")
        if timeout is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def set_interval(self, seconds: int) -> None:
        """Change the interval between passes.

        If running, polling restarts with the new interval, which also
        triggers an immediate pass.

        Raises:
            ValueError: If seconds is not positive.
        """
        _check_interval(seconds)
        self._interval = seconds
        if self.running:
            self.stop()
            self.start()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Poll pass failed")
            if stop_event.wait(self._interval):
                break

    def poll_once(self, only: str | None = None) -> PassResult:
        """Run one pass over the saved accounts.

        Args:
            only: Check this account email only.

        Returns:
            PassResult with per-pass counters and the counts seen.
        """
        with self._pass_lock:
            result = PassResult(seq=next(self._seq))
            for account in self._registry.accounts:
                if only is not None and account.email != only:
                    continue
                try:
                    self._check_account(account.email, result)
                except Exception as e:
                    logger.warning("Unread check failed for %s: %s", account.email, e)
                    result.add_error(account.email, str(e))

        logger.debug(
            "Pass %d: %d checked, %d notified, %d skipped, %d errors",
            result.seq,
            result.checked,
            result.notified,
            result.skipped,
            result.errors,
        )
        return result

    def _check_account(self, email: str, result: PassResult) -> None:
        try:
            creds = self._tokens.get_credentials(email)
        except AuthFailure as e:
            logger.warning("Skipping %s: %s", email, e.reason)
            result.skipped += 1
            return

        client = self._client_factory(creds)

        try:
            count = self._count_unread(client)
        except HttpError as e:
            status = http_status(e)
            if status == 401:
                # The fresh token is used on the next pass
                logger.info("Token rejected for %s, refreshing", email)
                self._tokens.refresh(email)
                result.add_error(email, "token expired")
            else:
                logger.warning("Gmail API error %d for %s", status, email)
                result.add_error(email, f"HTTP {status}")
            return

        result.checked += 1
        result.counts[email] = count

        previous = self._registry.unread_count(email)
        delta = max(0, count - previous)

        applied = self._registry.set_unread_count(email, count, pass_seq=result.seq)
        if applied and delta > 0:
            self._notifier.show(
                notification_id(email),
                f"New mail ({email})",
                f"{delta} new unread email{'s' if delta != 1 else ''}",
            )
            result.notified += 1

    def _count_unread(self, client: GmailClient) -> int:
        if self._exact_count:
            return len(client.list_messages(query=UNREAD_QUERY, max_results=self._count_cap))
        # First page only: undercounts when more unread messages exist
        return len(client.list_message_ids(query=UNREAD_QUERY).ids)


def _check_interval(seconds: int) -> None:
    if seconds <= 0:
        raise ValueError(f"Poll interval must be positive, got {seconds}")
