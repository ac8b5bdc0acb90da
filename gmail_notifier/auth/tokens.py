"""Per-account access token cache.

The poller, the inbox fetcher and the message detail fetcher all need "a
valid token for account X". TokenManager is the single place that answers
that: it keeps the last identity for each email, reuses it until the token
expires, and otherwise signs in silently, falling back to interactive
sign-in when allowed.
"""

import logging
import threading
from typing import Protocol

from google.oauth2.credentials import Credentials

from gmail_notifier.errors import AuthFailure

from .google import Identity

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    def sign_in_silently(self, email: str | None = None) -> Identity | None: ...

    def sign_in_interactive(self, login_hint: str | None = None) -> Identity | None: ...

    def refresh(self, identity: Identity) -> Identity | None: ...

    def sign_out(self, email: str) -> None: ...


def _same_account(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


class TokenManager:
    """Cache of signed-in identities keyed by email.

    Example:
        tokens = TokenManager(GoogleSignIn(client_id, client_secret))
        creds = tokens.get_credentials("me@gmail.com")
        client = GmailClient(creds)
    """

    def __init__(self, provider: CredentialProvider, *, allow_interactive: bool = True):
        """Initialize the cache.

        Args:
            provider: Performs silent, interactive and refresh sign-ins.
            allow_interactive: Fall back to a browser prompt when no cached
                token works. Interactive sign-in may block indefinitely.
        """
        self._provider = provider
        self._allow_interactive = allow_interactive
        self._identities: dict[str, Identity] = {}
        self._lock = threading.Lock()

    def get_identity(self, email: str) -> Identity:
        """Get a signed-in identity with a valid token for email.

        Raises:
            AuthFailure: If no matching identity could be obtained.
        """
        with self._lock:
            cached = self._identities.get(email)
        if cached is not None and cached.valid:
            return cached

        identity = self._provider.sign_in_silently(email)

        if identity is None or not _same_account(identity.email, email):
            if not self._allow_interactive:
                raise AuthFailure(email, "no cached credentials; sign in again")
            logger.info("Prompting interactive sign-in for %s", email)
            identity = self._provider.sign_in_interactive(login_hint=email)

        if identity is None:
            raise AuthFailure(email, "sign-in was cancelled or failed")

        if not _same_account(identity.email, email):
            raise AuthFailure(email, f"signed in as {identity.email} instead")

        if not identity.token:
            raise AuthFailure(email, "sign-in returned no access token")

        with self._lock:
            self._identities[email] = identity
        return identity

    def get_credentials(self, email: str) -> Credentials:
        """Get OAuth credentials with a valid token for email.

        Raises:
            AuthFailure: If no matching identity could be obtained.
        """
        return self.get_identity(email).credentials

    def refresh(self, email: str) -> bool:
        """Refresh the cached token for email after the API rejected it.

        On failure the cached identity is dropped, so the next request
        goes through sign-in again.

        Returns:
            True if a fresh token is now cached.
        """
        with self._lock:
            cached = self._identities.get(email)

        refreshed = self._provider.refresh(cached) if cached is not None else None

        with self._lock:
            if refreshed is None:
                self._identities.pop(email, None)
                logger.info("Dropped cached token for %s", email)
                return False
            self._identities[email] = refreshed
        return True

    def sign_in_new(self) -> Identity:
        """Sign in a new account interactively and cache it.

        Raises:
            AuthFailure: If the user cancelled or sign-in failed.
        """
        identity = self._provider.sign_in_interactive()
        if identity is None:
            raise AuthFailure("(new account)", "sign-in was cancelled or failed")

        with self._lock:
            self._identities[identity.email] = identity
        return identity

    def forget(self, email: str) -> None:
        """Drop the cached identity and the stored token for email."""
        with self._lock:
            self._identities.pop(email, None)
        self._provider.sign_out(email)
