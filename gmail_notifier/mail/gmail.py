"""Gmail API client.

Wraps the Gmail API for the three calls gmail-notifier makes: listing
message ids (by query or label, one page at a time), fetching header
metadata plus snippet, and fetching a full message.
"""

from dataclasses import dataclass, field

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError  # noqa: F401 - re-exported for callers

# Headers requested for inbox previews
PREVIEW_HEADERS = ("Subject", "From")

# Gmail caps maxResults at 500 per page
MAX_PAGE_SIZE = 500

# Raised by execute() when no HTTP response arrived or the token refresh failed
TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error, GoogleAuthError)


@dataclass
class MessagePage:
    """One page of message ids from messages.list."""

    ids: list[str] = field(default_factory=list)
    next_page_token: str | None = None


def http_status(error: HttpError) -> int:
    """HTTP status code of a Gmail API error."""
    return int(error.resp.status)


class GmailClient:
    """Client for Gmail API operations.

    Not thread-safe: the underlying HTTP transport must not be shared
    between threads, so build one client per thread.

    Example:
        client = GmailClient(tokens.get_credentials("me@gmail.com"))
        page = client.list_message_ids(label_id="INBOX", max_results=20)
        meta = client.get_metadata(page.ids[0])
    """

    def __init__(self, credentials: Credentials):
        """Initialize Gmail client with credentials.

        Args:
            credentials: Google OAuth credentials object.
        """
        self._credentials = credentials
        self._service = build(
            "gmail", "v1", credentials=credentials, cache_discovery=False
        )

    def list_message_ids(
        self,
        label_id: str | None = None,
        query: str | None = None,
        max_results: int | None = None,
        page_token: str | None = None,
    ) -> MessagePage:
        """List one page of message ids matching the given criteria.

        Args:
            label_id: Filter by label ID (e.g., "INBOX").
            query: Gmail search query (e.g., "is:unread").
            max_results: Page size. None uses the API default (100).
            page_token: Token from a previous page.

        Returns:
            MessagePage with the ids in server order and the next page token.
        """
        params = {"userId": "me"}
        if label_id:
            params["labelIds"] = [label_id]
        if query:
            params["q"] = query
        if max_results is not None:
            params["maxResults"] = min(max_results, MAX_PAGE_SIZE)
        if page_token:
            params["pageToken"] = page_token

        result = self._service.users().messages().list(**params).execute()

        return MessagePage(
            ids=[msg["id"] for msg in result.get("messages", [])],
            next_page_token=result.get("nextPageToken"),
        )

    def list_messages(
        self,
        label_id: str | None = None,
        query: str | None = None,
        max_results: int = 100,
    ) -> list[str]:
        """List message ids across pages, up to max_results.

        Args:
            label_id: Filter by label ID (e.g., "INBOX").
            query: Gmail search query (e.g., "is:unread").
            max_results: Maximum number of message ids to return.

        Returns:
            List of message ID strings.
        """
        message_ids: list[str] = []
        page_token = None

        while len(message_ids) < max_results:
            page = self.list_message_ids(
                label_id=label_id,
                query=query,
                max_results=max_results - len(message_ids),
                page_token=page_token,
            )
            message_ids.extend(page.ids[: max_results - len(message_ids)])

            page_token = page.next_page_token
            if not page_token:
                break

        return message_ids

    def get_metadata(
        self, message_id: str, headers: tuple[str, ...] = PREVIEW_HEADERS
    ) -> dict:
        """Get selected headers and the snippet of a message.

        Returns:
            Message resource with payload.headers limited to `headers`
            and a `snippet`, without body content.
        """
        return (
            self._service.users()
            .messages()
            .get(
                userId="me",
                id=message_id,
                format="metadata",
                metadataHeaders=list(headers),
            )
            .execute()
        )

    def get_full(self, message_id: str) -> dict:
        """Get a message with its full MIME part tree.

        Returns:
            Message resource; payload has headers, mimeType, body and
            nested parts, with body data base64url-encoded.
        """
        return (
            self._service.users()
            .messages()
            .get(userId="me", id=message_id, format="full")
            .execute()
        )
