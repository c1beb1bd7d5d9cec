"""Article listing and bulk fetch across feeds."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence, Union

from .errors import NotFoundError, ValidationError
from .feeds import parse_id
from .ingestion import BulkRefreshSummary, IngestionEngine
from .storage import Article, Storage
from .utils import get_logger

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 50
DEFAULT_BULK_LIMIT = 100
MAX_LIMIT = 1000


@dataclass
class FeedArticleCount:
    """Number of matching articles for one feed."""

    feed_id: uuid.UUID
    feed_title: str
    article_count: int

    def to_dict(self) -> dict:
        return {
            "feed_id": str(self.feed_id),
            "feed_title": self.feed_title,
            "article_count": self.article_count,
        }


@dataclass
class BulkFetchResult:
    """A page of articles with totals, optionally after refreshing the feeds."""

    articles: list[Article]
    total_count: int
    feed_summaries: list[FeedArticleCount] = field(default_factory=list)
    refresh: Optional[BulkRefreshSummary] = None

    def to_dict(self) -> dict:
        data = {
            "articles": [article.to_dict() for article in self.articles],
            "total_count": self.total_count,
            "feed_summaries": [summary.to_dict() for summary in self.feed_summaries],
        }
        if self.refresh is not None:
            data["refresh"] = self.refresh.to_dict()
        return data


class ArticleService:
    """Read access to stored articles."""

    def __init__(self, storage: Storage, ingestion: Optional[IngestionEngine] = None):
        self.storage = storage
        self.ingestion = ingestion or IngestionEngine(storage)

    async def list_articles(
        self,
        feed_id: Optional[Union[str, uuid.UUID]] = None,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> list[Article]:
        """Newest articles first, optionally restricted to one feed."""
        _check_page(limit, offset)
        if feed_id is not None:
            feed_id = parse_id(feed_id)
            if await self.storage.get_feed(feed_id) is None:
                raise NotFoundError(f"Feed with ID {feed_id} not found")

        articles = await self.storage.list_articles(feed_id=feed_id, limit=limit, offset=offset)
        logger.debug(f"Fetched {len(articles)} articles")
        return articles

    async def get_article(self, article_id: Union[str, uuid.UUID]) -> Article:
        article_id = parse_id(article_id, kind="article")
        article = await self.storage.get_article(article_id)
        if article is None:
            raise NotFoundError(f"Article with ID {article_id} not found")
        return article

    async def bulk_fetch(
        self,
        feed_ids: Sequence[Union[str, uuid.UUID]] = (),
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = DEFAULT_BULK_LIMIT,
        offset: int = 0,
        refresh: bool = True,
    ) -> BulkFetchResult:
        """
        Optionally refresh the given feeds, then page through their articles.

        Refresh failures are logged and reported but never fail the fetch.

        Args:
            feed_ids: Feeds to include (all feeds when empty)
            start_date: Only articles published at or after this time
            end_date: Only articles published at or before this time
            limit: Page size, 1-1000
            offset: Number of articles to skip
            refresh: Fetch new articles online before querying

        Returns:
            BulkFetchResult
        """
        _check_page(limit, offset)
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must not be after end_date")

        ids = [parse_id(feed_id) for feed_id in feed_ids]
        logger.info(f"Starting bulk fetch for {len(ids)} feeds")

        refresh_summary = None
        if refresh and ids:
            refresh_summary = await self.ingestion.refresh_feeds(ids)
            logger.info(f"Total new articles fetched: {refresh_summary.total_articles_added}")

        articles, total_count = await self.storage.find_articles(
            ids, start=start_date, end=end_date, limit=limit, offset=offset
        )

        feed_summaries = []
        if ids:
            rows = await self.storage.count_articles_by_feed(ids, start=start_date, end=end_date)
            feed_summaries = [
                FeedArticleCount(
                    feed_id=row.feed_id,
                    feed_title=row.feed_title,
                    article_count=int(row.article_count),
                )
                for row in rows
            ]

        logger.debug(f"Bulk fetch completed: {len(articles)} articles, {total_count} total")
        return BulkFetchResult(
            articles=articles,
            total_count=total_count,
            feed_summaries=feed_summaries,
            refresh=refresh_summary,
        )


def _check_page(limit: int, offset: int) -> None:
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")
    if offset < 0:
        raise ValidationError("offset must not be negative")
