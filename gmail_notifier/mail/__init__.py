"""Gmail API access: inbox pages, message details and their models."""

from .gmail import GmailClient, HttpError, MessagePage
from .inbox import InboxPage, InboxSession, MailFetcher
from .models import EmailDetail, MessagePreview

__all__ = [
    "EmailDetail",
    "GmailClient",
    "HttpError",
    "InboxPage",
    "InboxSession",
    "MailFetcher",
    "MessagePage",
    "MessagePreview",
]
