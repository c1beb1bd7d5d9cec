"""Map parsed feed entries onto article records."""

import uuid
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from ..storage.models import Feed, utcnow
from .parser import RawEntry

UNTITLED = "Untitled"


@dataclass
class ArticleRecord:
    """An article ready to be stored."""

    id: uuid.UUID
    title: str
    url: str
    feed_id: uuid.UUID
    content: str
    published_at: datetime
    created_at: datetime
    updated_at: datetime

    def to_row(self) -> dict:
        """Column values for an INSERT."""
        return asdict(self)


def normalize(feed: Feed, entry: RawEntry, now: Optional[datetime] = None) -> ArticleRecord:
    """
    Build the article record for one entry of `feed`.

    content falls back from body to summary to "", published_at from
    published to updated to now, url is the first link or "", and a
    missing title becomes "Untitled". Every call yields a new id.
    """
    now = now or utcnow()
    if entry.body is not None:
        content = entry.body
    elif entry.summary is not None:
        content = entry.summary
    else:
        content = ""

    return ArticleRecord(
        id=uuid.uuid4(),
        title=entry.title if entry.title is not None else UNTITLED,
        url=entry.links[0] if entry.links else "",
        feed_id=feed.id,
        content=content,
        published_at=entry.published or entry.updated or now,
        created_at=now,
        updated_at=now,
    )
