"""Shared fixtures: a throwaway SQLite database and fake collaborators."""

import uuid
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Optional

import pytest

from rss_digest.errors import FetchError
from rss_digest.rss import ArticleRecord
from rss_digest.storage import Feed, Storage, create_engine, init_db, utcnow


class FakeFeedClient:
    """Serves canned feed documents by URL and records every fetch."""

    def __init__(self, documents: Optional[dict] = None):
        self.documents = dict(documents or {})
        self.calls: list[str] = []
        self.closed = False

    async def fetch(self, url: str, timeout: Optional[float] = None) -> bytes:
        self.calls.append(url)
        document = self.documents.get(url)
        if isinstance(document, Exception):
            raise document
        if document is None:
            raise FetchError("Failed to fetch feed. Status: 404", url=url, status_code=404)
        return document

    def close(self) -> None:
        self.closed = True


class FakeSummarizer:
    """Deterministic stand-in for the OpenAI summarizer."""

    model = "fake-model"

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.article_calls: list[tuple[str, str]] = []
        self.aggregate_calls: list[tuple[list, int]] = []

    async def summarize_article(self, title: str, content: str) -> str:
        self.article_calls.append((title, content))
        if self.error:
            raise self.error
        return f"Summary of {title}"

    async def summarize_aggregate(self, feeds, hours_back: int) -> str:
        self.aggregate_calls.append((list(feeds), hours_back))
        if self.error:
            raise self.error
        return f"Digest of {len(feeds)} feeds over {hours_back}h"


class TickingClock:
    """Clock that advances one second per call."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def rss_document(items: list[dict], title: str = "Test Feed") -> bytes:
    """Build an RSS 2.0 document; each item may carry title, link, description, pub_date."""
    parts = []
    for item in items:
        fields = []
        if "title" in item:
            fields.append(f"<title>{item['title']}</title>")
        if "link" in item:
            fields.append(f"<link>{item['link']}</link>")
        if "description" in item:
            fields.append(f"<description>{item['description']}</description>")
        if "pub_date" in item:
            fields.append(f"<pubDate>{format_datetime(item['pub_date'])}</pubDate>")
        parts.append("<item>" + "".join(fields) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        f"<title>{title}</title><link>https://example.com/</link>"
        "<description>Test</description>"
        + "".join(parts)
        + "</channel></rss>"
    ).encode("utf-8")


@pytest.fixture
async def storage(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    await init_db(engine)
    storage = Storage(engine)
    yield storage
    await storage.close()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


async def add_feed(storage: Storage, title: str, url: Optional[str] = None, active: bool = True) -> Feed:
    feed = await storage.add_feed(title, url or f"https://{title.lower().replace(' ', '-')}.example.com/rss")
    if not active:
        feed = await storage.update_feed(feed.id, active=False)
    return feed


async def add_article(
    storage: Storage,
    feed: Feed,
    url: str,
    hours_ago: float = 1,
    title: str = "Article",
    content: str = "Body",
) -> ArticleRecord:
    now = utcnow()
    record = ArticleRecord(
        id=uuid.uuid4(),
        title=title,
        url=url,
        feed_id=feed.id,
        content=content,
        published_at=now - timedelta(hours=hours_ago),
        created_at=now,
        updated_at=now,
    )
    assert await storage.insert_article_if_absent(record)
    return record
