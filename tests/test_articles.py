"""Tests for rss_digest.articles."""

import uuid
from datetime import timedelta

import pytest

from rss_digest.articles import ArticleService
from rss_digest.errors import NotFoundError, ValidationError
from rss_digest.ingestion import IngestionEngine
from rss_digest.storage import utcnow

from conftest import FakeFeedClient, add_article, add_feed, rss_document


@pytest.fixture
def client() -> FakeFeedClient:
    return FakeFeedClient()


@pytest.fixture
def service(storage, client, clock) -> ArticleService:
    return ArticleService(storage, IngestionEngine(storage, client=client, clock=clock))


class TestListArticles:
    async def test_lists_newest_first(self, storage, service) -> None:
        feed = await add_feed(storage, "Tech")
        await add_article(storage, feed, "https://t.example/old", hours_ago=3, title="old")
        await add_article(storage, feed, "https://t.example/new", hours_ago=1, title="new")

        assert [a.title for a in await service.list_articles()] == ["new", "old"]

    async def test_unknown_feed(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.list_articles(feed_id=uuid.uuid4())

    @pytest.mark.parametrize("limit,offset", [(0, 0), (1001, 0), (10, -1)])
    async def test_rejects_bad_paging(self, service, limit, offset) -> None:
        with pytest.raises(ValidationError):
            await service.list_articles(limit=limit, offset=offset)


class TestGetArticle:
    async def test_found(self, storage, service) -> None:
        feed = await add_feed(storage, "Tech")
        record = await add_article(storage, feed, "https://t.example/1", title="Hello")

        article = await service.get_article(str(record.id))
        assert article.title == "Hello"

    async def test_missing(self, service) -> None:
        with pytest.raises(NotFoundError):
            await service.get_article(uuid.uuid4())

    async def test_invalid_id(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.get_article("nope")


class TestBulkFetch:
    async def test_refreshes_then_queries(self, storage, client, service) -> None:
        good = await add_feed(storage, "Good")
        bad = await add_feed(storage, "Bad")
        client.documents[good.url] = rss_document([
            {"title": "Fresh", "link": "https://g.example/1", "pub_date": utcnow()},
        ])

        result = await service.bulk_fetch([good.id, bad.id])

        assert result.total_count == 1
        assert [a.title for a in result.articles] == ["Fresh"]
        assert result.refresh.total_articles_added == 1
        assert [r.success for r in result.refresh.results] == [True, False]
        assert [(s.feed_title, s.article_count) for s in result.feed_summaries] == [
            ("Bad", 0),
            ("Good", 1),
        ]

    async def test_without_refresh_does_not_fetch(self, storage, client, service) -> None:
        feed = await add_feed(storage, "Tech")
        await add_article(storage, feed, "https://t.example/1")

        result = await service.bulk_fetch([feed.id], refresh=False)

        assert client.calls == []
        assert result.refresh is None
        assert result.total_count == 1
        assert "refresh" not in result.to_dict()

    async def test_date_range_and_paging(self, storage, service) -> None:
        feed = await add_feed(storage, "Tech")
        for i in range(4):
            await add_article(storage, feed, f"https://t.example/{i}", hours_ago=i * 10 + 1)

        now = utcnow()
        result = await service.bulk_fetch(
            [feed.id],
            start_date=now - timedelta(hours=25),
            end_date=now,
            limit=1,
            offset=1,
            refresh=False,
        )

        assert result.total_count == 3
        assert [a.url for a in result.articles] == ["https://t.example/1"]
        assert result.feed_summaries[0].article_count == 3

    async def test_no_feed_ids_covers_all_feeds(self, storage, service) -> None:
        first = await add_feed(storage, "First")
        second = await add_feed(storage, "Second")
        await add_article(storage, first, "https://f.example/1")
        await add_article(storage, second, "https://s.example/1")

        result = await service.bulk_fetch()

        assert result.total_count == 2
        assert result.feed_summaries == []
        assert result.refresh is None

    async def test_rejects_inverted_range(self, service) -> None:
        now = utcnow()
        with pytest.raises(ValidationError):
            await service.bulk_fetch(start_date=now, end_date=now - timedelta(hours=1))

    async def test_rejects_limit_over_maximum(self, service) -> None:
        with pytest.raises(ValidationError):
            await service.bulk_fetch(limit=1001)
