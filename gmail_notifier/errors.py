"""Exception types shared across gmail-notifier.

Nothing here is fatal to the process. Background polling logs these and
moves on; CLI commands print them and exit with a non-zero status.
"""


class NotifierError(Exception):
    """Base class for gmail-notifier errors."""

    pass


class AuthFailure(NotifierError):
    """No identity or access token could be obtained for an account."""

    def __init__(self, email: str, reason: str):
        super().__init__(f"{email}: {reason}")
        self.email = email
        self.reason = reason


class FetchError(NotifierError):
    """A user-initiated Gmail API call returned a non-success status."""

    def __init__(self, status: int | None, message: str):
        super().__init__(f"Gmail API error {status}: {message}" if status else message)
        self.status = status
        self.message = message


class DecodeFailure(NotifierError):
    """A message body payload could not be decoded."""

    pass


class StorageCorrupt(NotifierError):
    """The persisted account list could not be read."""

    pass


class NotifierUnavailable(NotifierError):
    """No desktop notification command is available on this system."""

    pass
