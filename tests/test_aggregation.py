"""Tests for rss_digest.aggregation."""

import uuid

import pytest

from rss_digest.aggregation import DEFAULT_HOURS_BACK, AggregationEngine, validate_window
from rss_digest.errors import BadRequestError, NotFoundError, SummarizationError

from conftest import FakeSummarizer, add_article, add_feed


@pytest.fixture
def engine(storage, summarizer) -> AggregationEngine:
    return AggregationEngine(storage, summarizer)


class TestValidateWindow:
    def test_defaults_to_24_hours(self) -> None:
        assert validate_window([uuid.uuid4()], None) == DEFAULT_HOURS_BACK == 24

    @pytest.mark.parametrize("hours_back", [1, 24, 168])
    def test_accepts_bounds(self, hours_back) -> None:
        assert validate_window([uuid.uuid4()], hours_back) == hours_back

    @pytest.mark.parametrize("hours_back", [0, -5, 169, True, "24", 2.5])
    def test_rejects_out_of_range_and_non_integers(self, hours_back) -> None:
        with pytest.raises(BadRequestError):
            validate_window([uuid.uuid4()], hours_back)

    def test_rejects_empty_feed_list(self) -> None:
        with pytest.raises(BadRequestError):
            validate_window([], 24)


class TestAggregate:
    async def test_validation_happens_before_data_access(self, summarizer) -> None:
        storage = object()  # any attribute access would fail
        engine = AggregationEngine(storage, summarizer)

        with pytest.raises(BadRequestError):
            await engine.aggregate([uuid.uuid4()], hours_back=0)
        with pytest.raises(BadRequestError):
            await engine.aggregate([], hours_back=12)
        assert summarizer.aggregate_calls == []

    async def test_groups_active_feed_and_skips_inactive(self, storage, summarizer, engine) -> None:
        news = await add_feed(storage, "News")
        paused = await add_feed(storage, "Paused", active=False)
        await add_article(storage, news, "https://n.example/1", hours_ago=1)
        await add_article(storage, news, "https://n.example/2", hours_ago=5)
        await add_article(storage, news, "https://n.example/3", hours_ago=30)
        await add_article(storage, paused, "https://p.example/1", hours_ago=1)

        result = await engine.aggregate([news.id, paused.id])

        assert result.time_range_hours == 24
        assert result.total_articles == 2
        assert [feed.feed_title for feed in result.feeds] == ["News"]
        assert [a.url for a in result.feeds[0].articles] == [
            "https://n.example/1",
            "https://n.example/2",
        ]
        assert result.summary == "Digest of 1 feeds over 24h"
        assert summarizer.aggregate_calls == [(result.feeds, 24)]

    async def test_wider_window_includes_older_articles(self, storage, engine) -> None:
        news = await add_feed(storage, "News")
        await add_article(storage, news, "https://n.example/1", hours_ago=1)
        await add_article(storage, news, "https://n.example/2", hours_ago=100)

        result = await engine.aggregate([news.id], hours_back=168)
        assert result.total_articles == 2
        assert result.time_range_hours == 168

    async def test_feeds_without_window_articles_are_omitted(self, storage, engine) -> None:
        busy = await add_feed(storage, "Busy")
        stale = await add_feed(storage, "Stale")
        await add_article(storage, busy, "https://b.example/1", hours_ago=2)
        await add_article(storage, stale, "https://s.example/1", hours_ago=48)

        result = await engine.aggregate([stale.id, busy.id], hours_back=24)
        assert [feed.feed_id for feed in result.feeds] == [busy.id]

    async def test_groups_follow_request_order(self, storage, engine) -> None:
        alpha = await add_feed(storage, "Alpha")
        beta = await add_feed(storage, "Beta")
        await add_article(storage, alpha, "https://a.example/1")
        await add_article(storage, beta, "https://b.example/1")

        result = await engine.aggregate([beta.id, alpha.id, beta.id])
        assert [feed.feed_title for feed in result.feeds] == ["Beta", "Alpha"]

    async def test_articles_carry_existing_summaries(self, storage, engine) -> None:
        news = await add_feed(storage, "News")
        summarized = await add_article(storage, news, "https://n.example/1", hours_ago=1)
        await add_article(storage, news, "https://n.example/2", hours_ago=2)
        await storage.insert_summary_if_absent(summarized.id, "Already summarized", "model")

        result = await engine.aggregate([news.id])

        articles = result.feeds[0].articles
        assert articles[0].summary == "Already summarized"
        assert articles[1].summary is None

    async def test_missing_and_inactive_only_raise_not_found(self, storage, summarizer, engine) -> None:
        paused = await add_feed(storage, "Paused", active=False)
        await add_article(storage, paused, "https://p.example/1")

        with pytest.raises(NotFoundError):
            await engine.aggregate([uuid.uuid4(), paused.id])
        assert summarizer.aggregate_calls == []

    async def test_missing_and_inactive_ids_do_not_fail_request(
        self, storage, summarizer, engine
    ) -> None:
        paused = await add_feed(storage, "Paused", active=False)
        live = await add_feed(storage, "Live")
        await add_article(storage, paused, "https://p.example/1")
        await add_article(storage, live, "https://l.example/1")

        result = await engine.aggregate([uuid.uuid4(), paused.id, live.id])

        assert [feed.feed_id for feed in result.feeds] == [live.id]
        assert result.total_articles == 1
        assert len(summarizer.aggregate_calls) == 1

    async def test_summarizer_failure_propagates(self, storage) -> None:
        news = await add_feed(storage, "News")
        await add_article(storage, news, "https://n.example/1")
        engine = AggregationEngine(storage, FakeSummarizer(error=SummarizationError("down")))

        with pytest.raises(SummarizationError):
            await engine.aggregate([news.id])

    async def test_to_dict_shape(self, storage, engine) -> None:
        news = await add_feed(storage, "News")
        await add_article(storage, news, "https://n.example/1", title="Headline")

        data = (await engine.aggregate([news.id], hours_back=6)).to_dict()

        assert data["total_articles"] == 1
        assert data["time_range_hours"] == 6
        assert data["feeds"][0]["article_count"] == 1
        assert data["feeds"][0]["articles"][0]["title"] == "Headline"
