"""Authentication for Gmail accounts.

Usage:
    from gmail_notifier.auth import GoogleSignIn, TokenManager

    tokens = TokenManager(GoogleSignIn(client_id, client_secret))

    # Sign in a new account (interactive)
    identity = tokens.sign_in_new()

    # Valid credentials for a saved account (silent first)
    creds = tokens.get_credentials(identity.email)
"""

from .google import SCOPES, GoogleSignIn, Identity
from .tokens import CredentialProvider, TokenManager

__all__ = [
    "SCOPES",
    "CredentialProvider",
    "GoogleSignIn",
    "Identity",
    "TokenManager",
]
