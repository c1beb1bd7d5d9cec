"""Async storage collaborator for feeds, articles and summaries."""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, AsyncIterator, Optional, Sequence

from sqlalchemy import Row, and_, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..errors import DatabaseError, InternalServerError
from ..utils import get_logger
from .models import Article, Feed, Summary, utcnow

if TYPE_CHECKING:
    from ..rss.normalizer import ArticleRecord

logger = get_logger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING support
_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class Storage:
    """
    Reads and writes feeds, articles and summaries through one async engine.

    Every SQLAlchemy failure is re-raised as DatabaseError. Uniqueness of
    article URLs and of per-article summaries is enforced with atomic
    conditional inserts rather than check-then-insert.
    """

    def __init__(self, engine: AsyncEngine):
        dialect = engine.dialect.name
        if dialect not in _INSERT_BY_DIALECT:
            raise InternalServerError(f"Unsupported database dialect: {dialect}")
        self.engine = engine
        self._insert = _INSERT_BY_DIALECT[dialect]
        self._sessionmaker = async_sessionmaker(engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, translating storage failures into DatabaseError."""
        async with self._sessionmaker() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error: {e}")
                raise DatabaseError(str(e)) from e

    async def close(self) -> None:
        """Dispose of the connection pool."""
        await self.engine.dispose()

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    async def get_feed(self, feed_id: uuid.UUID) -> Optional[Feed]:
        async with self.session() as session:
            return await session.get(Feed, feed_id)

    async def get_feed_by_url(self, url: str) -> Optional[Feed]:
        async with self.session() as session:
            return await session.scalar(select(Feed).where(Feed.url == url))

    async def list_feeds(self, active_only: bool = False) -> list[Feed]:
        """All feeds (or only active ones) ordered by title."""
        stmt = select(Feed).order_by(Feed.title)
        if active_only:
            stmt = stmt.where(Feed.active.is_(True))
        async with self.session() as session:
            return list(await session.scalars(stmt))

    async def add_feed(self, title: str, url: str) -> Feed:
        feed = Feed(title=title, url=url, active=True)
        async with self.session() as session:
            session.add(feed)
            await session.commit()
        return feed

    async def update_feed(
        self,
        feed_id: uuid.UUID,
        title: Optional[str] = None,
        url: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Optional[Feed]:
        """Apply the given field changes and bump updated_at; None if absent."""
        async with self.session() as session:
            feed = await session.get(Feed, feed_id)
            if feed is None:
                return None
            if title is not None:
                feed.title = title
            if url is not None:
                feed.url = url
            if active is not None:
                feed.active = active
            feed.updated_at = utcnow()
            await session.commit()
            return feed

    async def mark_fetched(self, feed_id: uuid.UUID, fetched_at: datetime) -> None:
        """Set last_fetched without touching any other column."""
        async with self.session() as session:
            feed = await session.get(Feed, feed_id)
            if feed is not None:
                feed.last_fetched = fetched_at
                await session.commit()

    async def delete_feed(self, feed_id: uuid.UUID) -> bool:
        """Delete a feed with its articles and their summaries in one transaction."""
        article_ids = select(Article.id).where(Article.feed_id == feed_id)
        async with self.session() as session:
            await session.execute(
                delete(Summary)
                .where(Summary.article_id.in_(article_ids))
                .execution_options(synchronize_session=False)
            )
            await session.execute(
                delete(Article)
                .where(Article.feed_id == feed_id)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(
                delete(Feed)
                .where(Feed.id == feed_id)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount > 0

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    async def insert_article_if_absent(self, article: "ArticleRecord") -> bool:
        """Insert unless an article with the same URL exists. True if inserted."""
        stmt = (
            self._insert(Article)
            .values(**article.to_row())
            .on_conflict_do_nothing(index_elements=["url"])
        )
        async with self.session() as session:
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0

    async def get_article(self, article_id: uuid.UUID) -> Optional[Article]:
        async with self.session() as session:
            return await session.get(Article, article_id)

    async def list_articles(
        self,
        feed_id: Optional[uuid.UUID] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Article]:
        """Newest articles first, optionally for a single feed."""
        stmt = select(Article).order_by(Article.published_at.desc()).limit(limit).offset(offset)
        if feed_id is not None:
            stmt = stmt.where(Article.feed_id == feed_id)
        async with self.session() as session:
            return list(await session.scalars(stmt))

    async def find_articles(
        self,
        feed_ids: Sequence[uuid.UUID] = (),
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Article], int]:
        """
        Page through articles matching optional feed and date filters.

        Returns:
            (page of articles newest first, total matching count)
        """
        conditions = _article_filters(feed_ids, start, end)
        page = (
            select(Article)
            .where(*conditions)
            .order_by(Article.published_at.desc())
            .limit(limit)
            .offset(offset)
        )
        total = select(func.count(Article.id)).where(*conditions)
        async with self.session() as session:
            articles = list(await session.scalars(page))
            total_count = await session.scalar(total)
        return articles, int(total_count or 0)

    async def count_articles_by_feed(
        self,
        feed_ids: Sequence[uuid.UUID],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Row]:
        """Per-feed article counts within the date range, feeds ordered by title.

        Feeds with no matching article are reported with a count of zero.
        """
        join_on = [Article.feed_id == Feed.id]
        if start is not None:
            join_on.append(Article.published_at >= start)
        if end is not None:
            join_on.append(Article.published_at <= end)
        stmt = (
            select(
                Feed.id.label("feed_id"),
                Feed.title.label("feed_title"),
                func.count(Article.id).label("article_count"),
            )
            .outerjoin(Article, and_(*join_on))
            .where(Feed.id.in_(list(feed_ids)))
            .group_by(Feed.id, Feed.title)
            .order_by(Feed.title)
        )
        async with self.session() as session:
            return list((await session.execute(stmt)).all())

    async def recent_articles_with_summaries(
        self, feed_id: uuid.UUID, since: datetime
    ) -> list[Row]:
        """
        Articles of one feed published at or after `since`, newest first.

        Each row carries id, title, url, published_at and the content of the
        article's most recent summary (None when it has none).
        """
        latest_summary = (
            select(Summary.content)
            .where(Summary.article_id == Article.id)
            .order_by(Summary.created_at.desc())
            .limit(1)
            .correlate(Article)
            .scalar_subquery()
        )
        stmt = (
            select(
                Article.id,
                Article.title,
                Article.url,
                Article.published_at,
                latest_summary.label("summary"),
            )
            .where(Article.feed_id == feed_id, Article.published_at >= since)
            .order_by(Article.published_at.desc())
        )
        async with self.session() as session:
            return list((await session.execute(stmt)).all())

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    async def get_latest_summary(self, article_id: uuid.UUID) -> Optional[Summary]:
        stmt = (
            select(Summary)
            .where(Summary.article_id == article_id)
            .order_by(Summary.created_at.desc())
            .limit(1)
        )
        async with self.session() as session:
            return await session.scalar(stmt)

    async def insert_summary_if_absent(
        self, article_id: uuid.UUID, content: str, model: str
    ) -> Optional[Summary]:
        """Store a summary unless the article already has one.

        Returns:
            The stored Summary, or None when another summary won.
        """
        now = utcnow()
        summary = Summary(
            id=uuid.uuid4(),
            article_id=article_id,
            content=content,
            model=model,
            created_at=now,
            updated_at=now,
        )
        stmt = (
            self._insert(Summary)
            .values(
                id=summary.id,
                article_id=summary.article_id,
                content=summary.content,
                model=summary.model,
                created_at=summary.created_at,
                updated_at=summary.updated_at,
            )
            .on_conflict_do_nothing(index_elements=["article_id"])
        )
        async with self.session() as session:
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount == 0:
                return None
        return summary


def _article_filters(
    feed_ids: Sequence[uuid.UUID],
    start: Optional[datetime],
    end: Optional[datetime],
) -> list:
    conditions = []
    if feed_ids:
        conditions.append(Article.feed_id.in_(list(feed_ids)))
    if start is not None:
        conditions.append(Article.published_at >= start)
    if end is not None:
        conditions.append(Article.published_at <= end)
    return conditions
