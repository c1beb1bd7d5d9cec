"""Time-windowed, cross-feed article aggregation and summarization."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from .errors import NotFoundError, ValidationError
from .storage import Storage, utcnow
from .utils import get_logger

if TYPE_CHECKING:
    from .summarizer import Summarizer

logger = get_logger(__name__)

DEFAULT_HOURS_BACK = 24
MIN_HOURS_BACK = 1
MAX_HOURS_BACK = 168  # one week


@dataclass
class ArticleDigest:
    """An in-window article with its summary, if any."""

    id: uuid.UUID
    title: str
    url: str
    published_at: datetime
    summary: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "url": self.url,
            "published_at": self.published_at.isoformat(),
            "summary": self.summary,
        }


@dataclass
class FeedDigest:
    """One feed's in-window articles, newest first."""

    feed_id: uuid.UUID
    feed_title: str
    articles: list[ArticleDigest] = field(default_factory=list)

    @property
    def article_count(self) -> int:
        return len(self.articles)

    def to_dict(self) -> dict:
        return {
            "feed_id": str(self.feed_id),
            "feed_title": self.feed_title,
            "article_count": self.article_count,
            "articles": [article.to_dict() for article in self.articles],
        }


@dataclass
class AggregationResult:
    """Synthesized summary plus the per-feed groups it was built from."""

    summary: str
    feeds: list[FeedDigest]
    total_articles: int
    time_range_hours: int

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "feeds": [feed.to_dict() for feed in self.feeds],
            "total_articles": self.total_articles,
            "time_range_hours": self.time_range_hours,
        }


class AggregationEngine:
    """Collects recent articles across feeds and hands them to the summarizer."""

    def __init__(
        self,
        storage: Storage,
        summarizer: "Summarizer",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.storage = storage
        self.summarizer = summarizer
        self.clock = clock

    async def aggregate(
        self,
        feed_ids: Sequence[uuid.UUID],
        hours_back: Optional[int] = None,
    ) -> AggregationResult:
        """
        Summarize what the given feeds published in the last `hours_back` hours.

        Unknown and inactive feeds are skipped, as are feeds with nothing in
        the window.

        Args:
            feed_ids: Feeds to include, in the order groups should appear
            hours_back: Window size in hours, 1-168 (defaults to 24)

        Returns:
            AggregationResult

        Raises:
            ValidationError: Empty feed list or window out of range
            NotFoundError: No requested feed has an article in the window
            SummarizationError: Provider failure
        """
        hours_back = validate_window(feed_ids, hours_back)

        logger.info(
            f"Creating aggregated summary for {len(feed_ids)} feeds, {hours_back} hours back"
        )
        cutoff = self.clock() - timedelta(hours=hours_back)

        groups: list[FeedDigest] = []
        total_articles = 0

        for feed_id in _unique(feed_ids):
            feed = await self.storage.get_feed(feed_id)
            if feed is None:
                logger.error(f"Feed with ID {feed_id} not found")
                continue

            if not feed.active:
                logger.info(f"Skipping inactive feed: {feed.title} ({feed_id})")
                continue

            rows = await self.storage.recent_articles_with_summaries(feed.id, cutoff)
            if not rows:
                logger.debug(f"No articles in window for feed: {feed.title}")
                continue

            group = FeedDigest(
                feed_id=feed.id,
                feed_title=feed.title,
                articles=[
                    ArticleDigest(
                        id=row.id,
                        title=row.title,
                        url=row.url,
                        published_at=row.published_at,
                        summary=row.summary,
                    )
                    for row in rows
                ],
            )
            total_articles += group.article_count
            groups.append(group)

        if not groups:
            raise NotFoundError(
                "No articles found in the specified time range for the selected feeds"
            )

        summary = await self.summarizer.summarize_aggregate(groups, hours_back)

        logger.info(
            f"Successfully created aggregated summary for {total_articles} articles "
            f"from {len(groups)} feeds"
        )
        return AggregationResult(
            summary=summary,
            feeds=groups,
            total_articles=total_articles,
            time_range_hours=hours_back,
        )


def validate_window(feed_ids: Sequence[uuid.UUID], hours_back: Optional[int]) -> int:
    """Check aggregation input and return the effective hours_back."""
    if not feed_ids:
        raise ValidationError("At least one feed ID must be provided")

    if hours_back is None:
        return DEFAULT_HOURS_BACK

    if isinstance(hours_back, bool) or not isinstance(hours_back, int):
        raise ValidationError("Hours back must be an integer")

    if hours_back < MIN_HOURS_BACK or hours_back > MAX_HOURS_BACK:
        raise ValidationError(
            f"Hours back must be between {MIN_HOURS_BACK} and {MAX_HOURS_BACK} (1 week)"
        )
    return hours_back


def _unique(feed_ids: Sequence[uuid.UUID]) -> list[uuid.UUID]:
    seen = set()
    ordered = []
    for feed_id in feed_ids:
        if feed_id not in seen:
            seen.add(feed_id)
            ordered.append(feed_id)
    return ordered
