"""Parsing of Gmail API message resources.

Gmail returns a message as a tree of MIME parts: each part has a
mimeType, headers, a body with base64url-encoded `data`, and optionally
nested `parts`. Body lookup walks that tree depth-first, so bodies are
found at any nesting level (multipart/mixed > multipart/alternative >
text/plain and deeper).
"""

import base64
import binascii
import logging
from collections.abc import Callable, Iterator

from gmail_notifier.errors import DecodeFailure

from .models import NO_SUBJECT, EmailDetail, MessagePreview

logger = logging.getLogger(__name__)

PartPredicate = Callable[[dict], bool]


def header_values(headers: list[dict] | None) -> dict[str, str]:
    """Map lowercased header names to values.

    If a header repeats, the last occurrence wins.
    """
    values: dict[str, str] = {}
    for header in headers or []:
        name = header.get("name")
        if not name:
            continue
        values[name.lower()] = header.get("value") or ""
    return values


def walk_parts(part: dict) -> Iterator[dict]:
    """Yield a part and all its descendants, depth-first in document order."""
    yield part
    for child in part.get("parts") or []:
        yield from walk_parts(child)


def find_part(payload: dict, predicate: PartPredicate) -> dict | None:
    """Return the first part in depth-first order matching predicate."""
    return next((p for p in walk_parts(payload) if predicate(p)), None)


def has_mime_type(mime_type: str) -> PartPredicate:
    """Predicate for parts of the given type that carry inline body data."""

    def predicate(part: dict) -> bool:
        return (
            (part.get("mimeType") or "").lower() == mime_type
            and bool((part.get("body") or {}).get("data"))
        )

    return predicate


def decode_body_data(data: str) -> str:
    """Decode base64url body data as UTF-8 text.

    Gmail omits base64 padding, so it is restored before decoding.

    Raises:
        DecodeFailure: If the data isn't valid base64url or UTF-8.
    """
    padded = data + "=" * (-len(data) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(str(e)) from e


def part_text(part: dict | None) -> str:
    """Decoded text of a part, or "" if absent or undecodable."""
    if part is None:
        return ""
    data = (part.get("body") or {}).get("data")
    if not data:
        return ""
    try:
        return decode_body_data(data)
    except DecodeFailure as e:
        logger.warning(
            "Could not decode %s part: %s", part.get("mimeType", "unknown"), e
        )
        return ""


def parse_preview(message_id: str, message: dict) -> MessagePreview:
    """Build an inbox preview from a metadata-format message."""
    headers = header_values((message.get("payload") or {}).get("headers"))
    return MessagePreview(
        id=message_id,
        subject=headers.get("subject") or NO_SUBJECT,
        from_addr=headers.get("from", ""),
        snippet=message.get("snippet") or "",
    )


def parse_detail(message_id: str, message: dict) -> EmailDetail:
    """Build an EmailDetail from a full-format message.

    The first text/plain and the first text/html parts found depth-first
    become the bodies. If neither yields any text, the snippet is used as
    the plain-text body.
    """
    payload = message.get("payload") or {}
    headers = header_values(payload.get("headers"))
    snippet = message.get("snippet") or ""

    body_text = part_text(find_part(payload, has_mime_type("text/plain")))
    body_html = part_text(find_part(payload, has_mime_type("text/html")))

    if not body_text and not body_html:
        body_text = snippet

    return EmailDetail(
        message_id=message_id,
        subject=headers.get("subject") or NO_SUBJECT,
        from_addr=headers.get("from", ""),
        to=headers.get("to", ""),
        cc=headers.get("cc", ""),
        bcc=headers.get("bcc", ""),
        date=headers.get("date", ""),
        body_text=body_text,
        body_html=body_html,
        snippet=snippet,
    )
