"""Google sign-in via OAuth 2.0 Installed Application Flow.

Handles interactive sign-in with the OAuth 2.0 loopback redirect flow: the
user's browser opens to Google's consent page and the authorization code is
captured by a local HTTP server.

Each signed-in account gets its own token file under
~/.config/gmail-notifier/credentials/<email>.json so several accounts can
be polled without prompting. Token refresh is handled by
google.oauth2.credentials.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from google.auth import jwt
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gmail_notifier.config.paths import CREDENTIALS_DIR, ensure_private_dir

logger = logging.getLogger(__name__)

# - openid/userinfo.email: identify which account was picked
# - gmail.readonly: unread counts, inbox previews, message bodies
SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/gmail.readonly",
]

# Loopback redirect URI for installed applications
REDIRECT_URI = "http://localhost:8080"
REDIRECT_PORT = 8080


@dataclass
class Identity:
    """A signed-in Google account and its OAuth credentials."""

    email: str
    id: str
    credentials: Credentials

    @property
    def token(self) -> str | None:
        """Current bearer access token."""
        return self.credentials.token

    @property
    def valid(self) -> bool:
        """True if the access token exists and hasn't expired."""
        return bool(self.credentials.valid)


def _build_client_config(client_id: str, client_secret: str) -> dict:
    """Build OAuth client configuration dict.

    InstalledAppFlow expects the JSON structure normally downloaded from
    Cloud Console; we construct it from config values instead.
    """
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": [REDIRECT_URI],
        }
    }


class GoogleSignIn:
    """Credential provider for Google accounts.

    Example:
        sign_in = GoogleSignIn(client_id, client_secret)
        identity = sign_in.sign_in_silently("me@gmail.com")
        if identity is None:
            identity = sign_in.sign_in_interactive(login_hint="me@gmail.com")
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        credentials_dir: Path | None = None,
    ):
        """Initialize the provider.

        Args:
            client_id: Google Cloud OAuth client ID.
            client_secret: Google Cloud OAuth client secret.
            credentials_dir: Where token files live. Defaults to CREDENTIALS_DIR.
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._credentials_dir = credentials_dir or CREDENTIALS_DIR

    def _token_file(self, email: str) -> Path:
        return self._credentials_dir / f"{email.lower()}.json"

    def _load_token(self, path: Path) -> Identity | None:
        """Load an identity from a token file.

        Returns None if the file doesn't exist or is invalid.
        """
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text())
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            creds = Credentials.from_authorized_user_info(data, SCOPES)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token file %s: %s", path.name, e)
            return None

        email = data.get("email")
        if not email:
            return None

        return Identity(email=email, id=data.get("account_id", ""), credentials=creds)

    def _save_token(self, identity: Identity) -> None:
        """Persist credentials to disk with 600 permissions."""
        ensure_private_dir(self._credentials_dir)

        creds = identity.credentials
        token_data = {
            "email": identity.email,
            "account_id": identity.id,
            "token": creds.token,
            "refresh_token": creds.refresh_token,
            "token_uri": creds.token_uri,
            "client_id": creds.client_id,
            "client_secret": creds.client_secret,
            "scopes": creds.scopes,
        }
        if creds.expiry:
            token_data["expiry"] = creds.expiry.isoformat() + "Z"

        path = self._token_file(identity.email)
        path.write_text(json.dumps(token_data, indent=2))
        path.chmod(0o600)

    def _latest_token_file(self) -> Path | None:
        if not self._credentials_dir.exists():
            return None
        files = sorted(
            self._credentials_dir.glob("*.json"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        return files[0] if files else None

    def sign_in_silently(self, email: str | None = None) -> Identity | None:
        """Get a cached identity without user interaction.

        Refreshes the access token if it has expired and a refresh token
        is available.

        Args:
            email: Account to load. If None, the most recently used account.

        Returns:
            The identity, or None if nothing usable is cached.
        """
        path = self._token_file(email) if email else self._latest_token_file()
        if path is None:
            return None

        identity = self._load_token(path)
        if identity is None:
            return None

        if identity.valid:
            return identity

        return self.refresh(identity)

    def sign_in_interactive(self, login_hint: str | None = None) -> Identity | None:
        """Run the browser consent flow.

        Blocks until the user completes or abandons the flow.

        Args:
            login_hint: Email to preselect on Google's account chooser.

        Returns:
            The new identity, or None if the flow failed or was cancelled.
        """
        client_config = _build_client_config(self._client_id, self._client_secret)
        extra = {"login_hint": login_hint} if login_hint else {}

        try:
            flow = InstalledAppFlow.from_client_config(
                client_config,
                scopes=SCOPES,
                redirect_uri=REDIRECT_URI,
            )
            creds = flow.run_local_server(
                port=REDIRECT_PORT,
                success_message="Signed in! You can close this window.",
                **extra,
            )
        except Exception as e:
            logger.warning("Interactive sign-in failed: %s", e)
            return None

        claims = _id_token_claims(creds)
        email = claims.get("email")
        if not email:
            logger.warning("Sign-in returned no email claim")
            return None

        identity = Identity(email=email, id=claims.get("sub", ""), credentials=creds)
        self._save_token(identity)
        return identity

    def refresh(self, identity: Identity) -> Identity | None:
        """Refresh the access token of an identity.

        Returns:
            The same identity with a fresh token, or None if the refresh
            token is missing, expired or revoked.
        """
        creds = identity.credentials
        if not creds.refresh_token:
            return None

        try:
            creds.refresh(Request())
        except GoogleAuthError as e:
            logger.warning("Token refresh failed for %s: %s", identity.email, e)
            return None

        self._save_token(identity)
        return identity

    def sign_out(self, email: str) -> None:
        """Forget the cached token for an account."""
        path = self._token_file(email)
        if path.exists():
            path.unlink()


def _id_token_claims(creds: Credentials) -> dict:
    """Read the claims of the ID token returned with the credentials.

    The signature isn't checked: the token was just received from Google's
    token endpoint.
    """
    raw = getattr(creds, "id_token", None)
    if not raw:
        return {}
    try:
        return jwt.decode(raw, verify=False)
    except ValueError as e:
        logger.warning("Could not decode ID token: %s", e)
        return {}
