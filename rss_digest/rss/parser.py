"""Parse raw RSS/Atom documents into entries."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from xml.sax import SAXParseException

import feedparser

from ..errors import ParseError
from ..utils import get_logger

logger = get_logger(__name__)


@dataclass
class RawEntry:
    """A feed entry as published, before normalization."""

    title: Optional[str] = None
    body: Optional[str] = None
    summary: Optional[str] = None
    published: Optional[datetime] = None
    updated: Optional[datetime] = None
    links: list[str] = field(default_factory=list)


def parse_feed(raw: bytes) -> list[RawEntry]:
    """
    Parse an RSS or Atom document.

    Args:
        raw: Feed document bytes

    Returns:
        Entries in document order

    Raises:
        ParseError: If the content is not a well-formed feed
    """
    parsed = feedparser.parse(raw)

    error = parsed.get("bozo_exception")
    # XML syntax errors are fatal even when the loose parser recovered entries
    if isinstance(error, SAXParseException) or (parsed.bozo and not parsed.entries):
        raise ParseError(f"Failed to parse XML: {error}")
    if not parsed.get("version") and not parsed.entries:
        raise ParseError("Failed to parse XML: not an RSS or Atom feed")
    if parsed.bozo:
        logger.warning(f"Feed parsed with recoverable errors: {error}")

    return [_to_raw_entry(entry) for entry in parsed.entries]


def _to_raw_entry(entry: feedparser.FeedParserDict) -> RawEntry:
    body = None
    for content in entry.get("content") or []:
        if content.get("value") is not None:
            body = content["value"]
            break

    return RawEntry(
        title=entry.get("title"),
        body=body,
        summary=entry.get("summary"),
        # Plain dict lookups skip feedparser's legacy updated -> published fallback
        published=_to_datetime(dict.get(entry, "published_parsed")),
        updated=_to_datetime(dict.get(entry, "updated_parsed")),
        links=[
            link["href"]
            for link in entry.get("links") or []
            if link.get("href") and link.get("rel") != "enclosure"
        ],
    )


def _to_datetime(parsed: Optional[time.struct_time]) -> Optional[datetime]:
    """feedparser normalizes dates to UTC struct_time."""
    if not parsed:
        return None
    try:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None
