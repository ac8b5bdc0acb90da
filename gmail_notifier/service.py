"""Application service.

NotifierService owns everything with process lifetime: the account
registry, the token cache, the notifier, the poller and the mail fetcher.
Create one at startup, pass it to whatever needs it, and close() it at
shutdown.
"""

from gmail_notifier.accounts import AccountRegistry, SavedAccount
from gmail_notifier.auth import GoogleSignIn, Identity, TokenManager
from gmail_notifier.auth.tokens import CredentialProvider
from gmail_notifier.config import (
    get_client_id,
    get_client_secret,
    get_defaults,
    get_notification_backend,
)
from gmail_notifier.config.schema import DefaultsConfig, NotifierConfig
from gmail_notifier.errors import AuthFailure
from gmail_notifier.mail import GmailClient, InboxSession, MailFetcher
from gmail_notifier.mail.inbox import ClientFactory
from gmail_notifier.notify import Notifier, create_notifier
from gmail_notifier.poll import PassResult, UnreadPoller
from gmail_notifier.storage import FileStore


# Seconds close() waits for a pass in progress
CLOSE_TIMEOUT = 5.0


class NotifierService:
    """Accounts, polling and fetching for one process.

    Example:
        with NotifierService.from_config(load_config()) as service:
            service.add_account()
            service.poller.start()
    """

    def __init__(
        self,
        store,
        provider: CredentialProvider,
        notifier: Notifier,
        defaults: DefaultsConfig,
        client_factory: ClientFactory = GmailClient,
    ):
        """Wire the service together and load saved accounts.

        Args:
            store: Persistent key-value store for the account list.
            provider: Credential provider for sign-in.
            notifier: Initialized notification backend.
            defaults: Merged [defaults] config section.
            client_factory: Builds a GmailClient from credentials.
        """
        self.defaults = defaults
        self.registry = AccountRegistry(store)
        self.tokens = TokenManager(
            provider, allow_interactive=defaults["interactive_sign_in"]
        )
        self.notifier = notifier
        self.poller = UnreadPoller(
            self.registry,
            self.tokens,
            notifier,
            client_factory=client_factory,
            interval=defaults["poll_interval"],
            exact_count=defaults["exact_unread_count"],
            count_cap=defaults["unread_count_cap"],
        )
        self.fetcher = MailFetcher(
            self.tokens,
            client_factory=client_factory,
            fetch_workers=defaults["fetch_workers"],
        )
        self.registry.load()

    @classmethod
    def from_config(cls, config: NotifierConfig) -> "NotifierService":
        """Build a service from the loaded configuration.

        Raises:
            AuthFailure: If the OAuth client isn't configured.
            NotifierUnavailable: If the desktop backend was requested but
                isn't available.
            ValueError: If a config value is invalid.
        """
        client_id = get_client_id(config)
        client_secret = get_client_secret(config)
        if not client_id or not client_secret:
            raise AuthFailure(
                "(config)",
                "OAuth client not configured. Set oauth.client_id and the "
                "GMAIL_NOTIFIER_CLIENT_SECRET environment variable.",
            )

        return cls(
            store=FileStore(),
            provider=GoogleSignIn(client_id, client_secret),
            notifier=create_notifier(get_notification_backend(config)),
            defaults=get_defaults(config),
        )

    def add_account(self) -> Identity:
        """Sign in a new account interactively and save it.

        Checks the new account's unread count right away. Signing in to an
        already saved account just refreshes its cached token.

        Raises:
            AuthFailure: If sign-in was cancelled or failed.
        """
        identity = self.tokens.sign_in_new()
        if self.registry.add_account(identity):
            self.poller.poll_once(only=identity.email)
        return identity

    def remove_account(self, email: str) -> bool:
        """Remove a saved account and forget its token.

        Returns:
            True if the account was saved.
        """
        removed = self.registry.remove_account(email)
        if removed:
            self.tokens.forget(email)
        return removed

    def get_account(self, email: str) -> SavedAccount | None:
        return next((a for a in self.registry.accounts if a.email == email), None)

    def check_now(self, email: str | None = None) -> PassResult:
        """Run one poll pass right away (manual refresh)."""
        return self.poller.poll_once(only=email)

    def open_inbox(self, email: str) -> InboxSession:
        """Start browsing an account's inbox."""
        return InboxSession(
            self.fetcher,
            email,
            page_size=self.defaults["inbox_page_size"],
            more_page_size=self.defaults["more_page_size"],
        )

    def close(self) -> None:
        """Stop polling. The service shouldn't be used afterwards."""
        self.poller.stop(timeout=CLOSE_TIMEOUT)

    def __enter__(self) -> "NotifierService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
