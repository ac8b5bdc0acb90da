"""Data models for inbox previews and message details.

Both are rebuilt on every fetch and never persisted.
"""

from dataclasses import dataclass

NO_SUBJECT = "(no subject)"


@dataclass
class MessagePreview:
    """One row of an inbox listing."""

    id: str
    subject: str = NO_SUBJECT
    from_addr: str = ""  # Full "Name <email>" format
    snippet: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "subject": self.subject,
            "from": self.from_addr,
            "snippet": self.snippet,
        }


@dataclass
class EmailDetail:
    """Headers and decoded bodies of a single message."""

    message_id: str
    subject: str = NO_SUBJECT
    from_addr: str = ""
    to: str = ""
    cc: str = ""
    bcc: str = ""
    date: str = ""  # Date header as sent, unparsed
    body_text: str = ""  # text/plain content, or the snippet as a fallback
    body_html: str = ""  # text/html content
    snippet: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.message_id,
            "subject": self.subject,
            "from": self.from_addr,
            "to": self.to,
            "cc": self.cc,
            "bcc": self.bcc,
            "date": self.date,
            "body_text": self.body_text,
            "body_html": self.body_html,
            "snippet": self.snippet,
        }
