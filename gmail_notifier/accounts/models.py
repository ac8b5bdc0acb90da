"""Data models for saved accounts."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SavedAccount:
    """A Gmail account the user has attached.

    Created on successful sign-in and never modified afterwards; the
    email is the unique key.
    """

    email: str
    id: str  # Google account ID (the "sub" claim)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"email": self.email, "id": self.id}

    @classmethod
    def from_dict(cls, data: dict) -> "SavedAccount":
        """Build from a serialized dict.

        Raises:
            ValueError: If email or id is missing or not a string.
        """
        email = data.get("email")
        account_id = data.get("id")
        if not isinstance(email, str) or not email:
            raise ValueError(f"Invalid account email: {email!r}")
        if not isinstance(account_id, str):
            raise ValueError(f"Invalid account id for {email}: {account_id!r}")
        return cls(email=email, id=account_id)
