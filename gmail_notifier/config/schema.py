"""Configuration schema definitions.

Uses TypedDict for type safety without runtime overhead.
These types match the structure of config.toml.
"""

from typing import TypedDict


class DefaultsConfig(TypedDict, total=False):
    """Settings for polling and fetching.

    Attributes:
        poll_interval: Seconds between unread-count poll passes.
        inbox_page_size: Messages fetched for the first inbox page.
        more_page_size: Messages fetched per additional inbox page.
        unread_preview_size: Messages shown by the unread preview.
        fetch_workers: Parallel metadata fetches (1 = sequential).
        exact_unread_count: Follow page tokens when counting unread mail.
        unread_count_cap: Upper bound on ids counted in exact mode.
        interactive_sign_in: Allow browser sign-in when no cached token works.
        log_level: Logging level name (e.g. "INFO").
    """

    poll_interval: int
    inbox_page_size: int
    more_page_size: int
    unread_preview_size: int
    fetch_workers: int
    exact_unread_count: bool
    unread_count_cap: int
    interactive_sign_in: bool
    log_level: str


class OAuthConfig(TypedDict, total=False):
    """Google OAuth client used for every account.

    Attributes:
        client_id: Google Cloud OAuth client ID.
        client_secret: Optional client secret (prefer env var).
    """

    client_id: str
    client_secret: str


class NotificationsConfig(TypedDict, total=False):
    """Notification delivery.

    Attributes:
        backend: "auto", "desktop" or "console".
    """

    backend: str


class NotifierConfig(TypedDict, total=False):
    """Root configuration structure."""

    defaults: DefaultsConfig
    oauth: OAuthConfig
    notifications: NotificationsConfig
