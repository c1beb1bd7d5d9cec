"""Feed refresh: fetch, parse, normalize, dedup and store articles."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from .errors import BadRequestError, NotFoundError
from .rss import FeedClient, normalize, parse_feed
from .storage import Storage, utcnow
from .utils import get_logger

logger = get_logger(__name__)


@dataclass
class FeedRefreshResult:
    """Outcome of refreshing one feed inside a bulk run."""

    feed_id: uuid.UUID
    feed_title: str
    articles_added: int
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = {
            "feed_id": str(self.feed_id),
            "feed_title": self.feed_title,
            "articles_added": self.articles_added,
            "success": self.success,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BulkRefreshSummary:
    """Totals and per-feed outcomes of a bulk refresh."""

    feeds_processed: int = 0
    total_articles_added: int = 0
    results: list[FeedRefreshResult] = field(default_factory=list)
    message: str = "No active feeds found"

    @property
    def failed(self) -> list[FeedRefreshResult]:
        return [result for result in self.results if not result.success]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "success": True,
            "message": self.message,
            "feeds_processed": self.feeds_processed,
            "total_articles_added": self.total_articles_added,
            "results": [result.to_dict() for result in self.results],
        }


class IngestionEngine:
    """Refreshes feeds into storage, one feed or many."""

    def __init__(
        self,
        storage: Storage,
        client: Optional[FeedClient] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the ingestion engine.

        Args:
            storage: Storage collaborator
            client: Feed client (creates one if not provided)
            clock: Source of the current UTC time
        """
        self.storage = storage
        self.client = client or FeedClient()
        self.clock = clock

    async def refresh_feed(self, feed_id: uuid.UUID) -> int:
        """
        Fetch a feed and store the articles not seen before.

        Articles are deduplicated by URL across all feeds. last_fetched is
        updated last, also when nothing new was found.

        Args:
            feed_id: Feed to refresh

        Returns:
            Number of articles inserted

        Raises:
            NotFoundError: Unknown feed
            BadRequestError: Feed is inactive (nothing is fetched)
            FeedParsingError: Fetch or parse failure
        """
        feed = await self.storage.get_feed(feed_id)
        if feed is None:
            raise NotFoundError(f"Feed with ID {feed_id} not found")

        if not feed.active:
            logger.info(f"Skipping refresh for inactive feed: {feed.title}")
            raise BadRequestError(f"Feed '{feed.title}' is currently inactive")

        logger.info(f"Fetching feed: {feed.title} ({feed.url})")
        raw = await self.client.fetch(feed.url)
        entries = parse_feed(raw)
        logger.info(f"Fetched {len(entries)} articles from {feed.title}")

        saved_count = 0
        now = self.clock()
        for entry in entries:
            article = normalize(feed, entry, now=now)
            if await self.storage.insert_article_if_absent(article):
                saved_count += 1

        await self.storage.mark_fetched(feed.id, self.clock())

        if entries:
            logger.info(f"Saved {saved_count} new articles from feed: {feed.title}")
        else:
            logger.info(f"No articles found in feed: {feed.title}")
        return saved_count

    async def refresh_all_active_feeds(self) -> BulkRefreshSummary:
        """
        Refresh every active feed, in title order, one at a time.

        A failing feed is reported in the results and does not stop the run.
        """
        feeds = await self.storage.list_feeds(active_only=True)
        if not feeds:
            logger.info("No active feeds found to refresh")
            return BulkRefreshSummary()

        summary = await self._refresh_each([(feed.id, feed.title) for feed in feeds])
        summary.message = f"Processed {summary.feeds_processed} active feeds"
        logger.info(
            f"Refreshed {summary.feeds_processed} active feeds, "
            f"total {summary.total_articles_added} new articles"
        )
        return summary

    async def refresh_feeds(self, feed_ids: Sequence[uuid.UUID]) -> BulkRefreshSummary:
        """Refresh the given feeds in order with the same per-feed isolation."""
        targets = []
        for feed_id in feed_ids:
            feed = await self.storage.get_feed(feed_id)
            targets.append((feed_id, feed.title if feed else ""))

        summary = await self._refresh_each(targets)
        summary.message = f"Processed {summary.feeds_processed} feeds"
        return summary

    async def _refresh_each(self, targets: list[tuple[uuid.UUID, str]]) -> BulkRefreshSummary:
        summary = BulkRefreshSummary()
        for feed_id, feed_title in targets:
            try:
                count = await self.refresh_feed(feed_id)
            except Exception as e:
                logger.error(f"Failed to refresh feed '{feed_title or feed_id}': {e}")
                summary.results.append(FeedRefreshResult(
                    feed_id=feed_id,
                    feed_title=feed_title,
                    articles_added=0,
                    success=False,
                    error=str(e),
                ))
                continue

            summary.total_articles_added += count
            summary.results.append(FeedRefreshResult(
                feed_id=feed_id,
                feed_title=feed_title,
                articles_added=count,
                success=True,
            ))
            logger.info(f"Successfully refreshed feed '{feed_title}': {count} articles")

        summary.feeds_processed = len(summary.results)
        return summary
