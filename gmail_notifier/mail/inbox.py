"""On-demand inbox listing and message retrieval.

MailFetcher turns Gmail API calls into MessagePreview and EmailDetail
objects for one account at a time. InboxSession keeps the page cursor for
an inbox being browsed and guards against overlapping page loads.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from google.oauth2.credentials import Credentials

from gmail_notifier.auth.tokens import TokenManager
from gmail_notifier.errors import FetchError

from .gmail import TRANSPORT_ERRORS, GmailClient, HttpError, http_status
from .models import EmailDetail, MessagePreview
from .parsing import parse_detail, parse_preview

logger = logging.getLogger(__name__)

INBOX_LABEL = "INBOX"
UNREAD_QUERY = "is:unread"

# Page sizes for the first inbox page and each page after it
INITIAL_PAGE_SIZE = 20
MORE_PAGE_SIZE = 10

UNREAD_PREVIEW_SIZE = 10

ClientFactory = Callable[[Credentials], GmailClient]


@dataclass
class InboxPage:
    """Previews for one page of the inbox."""

    previews: list[MessagePreview] = field(default_factory=list)
    next_page_token: str | None = None


class MailFetcher:
    """Fetches inbox pages and message details for saved accounts.

    Example:
        fetcher = MailFetcher(tokens)
        page = fetcher.list_inbox("me@gmail.com")
        detail = fetcher.get_email_detail("me@gmail.com", page.previews[0].id)
    """

    def __init__(
        self,
        tokens: TokenManager,
        client_factory: ClientFactory = GmailClient,
        fetch_workers: int = 1,
    ):
        """Initialize the fetcher.

        Args:
            tokens: Token cache used for every request.
            client_factory: Builds a GmailClient from credentials.
            fetch_workers: Parallel metadata fetches per page (1 = sequential).
        """
        if fetch_workers < 1:
            raise ValueError(f"fetch_workers must be >= 1, got {fetch_workers}")
        self._tokens = tokens
        self._client_factory = client_factory
        self._fetch_workers = fetch_workers

    def list_inbox(
        self,
        email: str,
        page_token: str | None = None,
        page_size: int = INITIAL_PAGE_SIZE,
    ) -> InboxPage:
        """Fetch one page of inbox previews.

        Raises:
            AuthFailure: If no token could be obtained.
            FetchError: If listing the inbox failed.
        """
        return self._list_previews(
            email, label_id=INBOX_LABEL, page_size=page_size, page_token=page_token
        )

    def unread_preview(
        self, email: str, limit: int = UNREAD_PREVIEW_SIZE
    ) -> list[MessagePreview]:
        """Fetch previews of the most recent unread messages.

        Raises:
            AuthFailure: If no token could be obtained.
            FetchError: If listing unread messages failed.
        """
        return self._list_previews(email, query=UNREAD_QUERY, page_size=limit).previews

    def get_email_detail(self, email: str, message_id: str) -> EmailDetail:
        """Fetch a message with headers and decoded bodies.

        Raises:
            AuthFailure: If no token could be obtained.
            FetchError: If the message could not be fetched.
        """
        creds = self._tokens.get_credentials(email)
        client = self._client_factory(creds)

        try:
            message = client.get_full(message_id)
        except HttpError as e:
            raise self._fetch_error(email, e) from e
        except TRANSPORT_ERRORS as e:
            raise _transport_error(email, e) from e

        return parse_detail(message_id, message)

    def _list_previews(
        self,
        email: str,
        page_size: int,
        label_id: str | None = None,
        query: str | None = None,
        page_token: str | None = None,
    ) -> InboxPage:
        creds = self._tokens.get_credentials(email)
        client = self._client_factory(creds)

        try:
            page = client.list_message_ids(
                label_id=label_id,
                query=query,
                max_results=page_size,
                page_token=page_token,
            )
        except HttpError as e:
            raise self._fetch_error(email, e) from e
        except TRANSPORT_ERRORS as e:
            raise _transport_error(email, e) from e

        previews = self._fetch_previews(client, creds, page.ids)
        return InboxPage(previews=previews, next_page_token=page.next_page_token)

    def _fetch_previews(
        self, client: GmailClient, creds: Credentials, message_ids: list[str]
    ) -> list[MessagePreview]:
        """Fetch metadata for each id, keeping the id order.

        Messages whose metadata can't be fetched are left out.
        """
        if self._fetch_workers == 1 or len(message_ids) <= 1:
            results = [self._fetch_preview(client, mid) for mid in message_ids]
        else:
            # Clients aren't thread-safe, so each task builds its own
            def fetch(message_id: str) -> MessagePreview | None:
                return self._fetch_preview(self._client_factory(creds), message_id)

            with ThreadPoolExecutor(max_workers=self._fetch_workers) as pool:
                results = list(pool.map(fetch, message_ids))

        return [preview for preview in results if preview is not None]

    def _fetch_preview(
        self, client: GmailClient, message_id: str
    ) -> MessagePreview | None:
        try:
            message = client.get_metadata(message_id)
        except HttpError as e:
            logger.warning(
                "Skipping message %s: metadata fetch failed (%s)",
                message_id,
                http_status(e),
            )
            return None
        except TRANSPORT_ERRORS as e:
            logger.warning(
                "Skipping message %s: metadata fetch failed (%s)", message_id, e
            )
            return None
        return parse_preview(message_id, message)

    def _fetch_error(self, email: str, error: HttpError) -> FetchError:
        status = http_status(error)
        if status == 401:
            # Refresh now so a retry uses a fresh token
            self._tokens.refresh(email)
        return FetchError(status, str(error))


def _transport_error(email: str, error: Exception) -> FetchError:
    logger.warning("Request for %s failed: %s", email, error)
    return FetchError(None, f"connection failed: {error}")


class InboxSession:
    """Inbox browsing state for one account.

    Holds the previews loaded so far and the cursor for the next page.
    Only one page load runs at a time; load_more() while another load is
    in flight does nothing.

    Example:
        session = InboxSession(fetcher, "me@gmail.com")
        session.load()
        while session.has_more:
            session.load_more()
    """

    def __init__(
        self,
        fetcher: MailFetcher,
        email: str,
        page_size: int = INITIAL_PAGE_SIZE,
        more_page_size: int = MORE_PAGE_SIZE,
    ):
        self._fetcher = fetcher
        self.email = email
        self._page_size = page_size
        self._more_page_size = more_page_size
        self._previews: list[MessagePreview] = []
        self._next_page_token: str | None = None
        self._loading = threading.Lock()

    @property
    def previews(self) -> list[MessagePreview]:
        return list(self._previews)

    @property
    def next_page_token(self) -> str | None:
        return self._next_page_token

    @property
    def has_more(self) -> bool:
        return self._next_page_token is not None

    @property
    def loading(self) -> bool:
        return self._loading.locked()

    def load(self) -> list[MessagePreview]:
        """Discard loaded previews and fetch the first page.

        Waits for any load in flight to finish first.

        Returns:
            The previews of the first page.

        Raises:
            AuthFailure: If no token could be obtained.
            FetchError: If listing the inbox failed.
        """
        with self._loading:
            page = self._fetcher.list_inbox(self.email, page_size=self._page_size)
            self._previews = list(page.previews)
            self._next_page_token = page.next_page_token
        return list(page.previews)

    def load_more(self) -> list[MessagePreview]:
        """Fetch the next page and append it.

        Does nothing if there is no next page or a load is already running.

        Returns:
            The newly loaded previews (empty if nothing was loaded).

        Raises:
            AuthFailure: If no token could be obtained.
            FetchError: If listing the inbox failed.
        """
        if self._next_page_token is None:
            return []
        if not self._loading.acquire(blocking=False):
            logger.debug("Load already in flight for %s", self.email)
            return []

        try:
            token = self._next_page_token
            if token is None:
                return []
            page = self._fetcher.list_inbox(
                self.email, page_token=token, page_size=self._more_page_size
            )
            self._previews.extend(page.previews)
            self._next_page_token = page.next_page_token
            return list(page.previews)
        finally:
            self._loading.release()
