"""Feed subscription management."""

import uuid
from dataclasses import dataclass
from typing import Optional, Union

from .errors import BadRequestError, NotFoundError, ValidationError
from .storage import Feed, Storage
from .utils import get_logger

logger = get_logger(__name__)


@dataclass
class ToggleResult:
    """Outcome of activating or deactivating a feed."""

    feed_id: uuid.UUID
    active: bool
    message: str

    def to_dict(self) -> dict:
        return {"feed_id": str(self.feed_id), "active": self.active, "message": self.message}


def parse_id(value: Union[str, uuid.UUID], kind: str = "feed") -> uuid.UUID:
    """Coerce a user-supplied identifier to a UUID."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except ValueError as e:
        raise ValidationError(f"Invalid {kind} ID: {value}") from e


class FeedService:
    """Create, update, toggle and delete feeds."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def list_feeds(self) -> list[Feed]:
        return await self.storage.list_feeds()

    async def get_feed(self, feed_id: Union[str, uuid.UUID]) -> Feed:
        feed_id = parse_id(feed_id)
        feed = await self.storage.get_feed(feed_id)
        if feed is None:
            raise NotFoundError(f"Feed with ID {feed_id} not found")
        return feed

    async def create_feed(self, title: str, url: str) -> Feed:
        title, url = _require(title, "title"), _require(url, "url")

        if await self.storage.get_feed_by_url(url) is not None:
            raise BadRequestError("Feed with this URL already exists")

        feed = await self.storage.add_feed(title, url)
        logger.info(f"Created new feed: {feed.title} ({feed.id})")
        return feed

    async def update_feed(
        self,
        feed_id: Union[str, uuid.UUID],
        title: Optional[str] = None,
        url: Optional[str] = None,
    ) -> Feed:
        """Change title and/or URL; omitted fields keep their value."""
        feed_id = parse_id(feed_id)
        if title is not None:
            title = _require(title, "title")
        if url is not None:
            url = _require(url, "url")

        if await self.storage.get_feed(feed_id) is None:
            raise NotFoundError(f"Feed with ID {feed_id} not found")

        if url is not None:
            existing = await self.storage.get_feed_by_url(url)
            if existing is not None and existing.id != feed_id:
                raise BadRequestError("Feed with this URL already exists")

        feed = await self.storage.update_feed(feed_id, title=title, url=url)
        if feed is None:
            raise NotFoundError(f"Feed with ID {feed_id} not found")
        logger.info(f"Updated feed: {feed.title} ({feed.id})")
        return feed

    async def set_active(self, feed_id: Union[str, uuid.UUID], active: bool) -> ToggleResult:
        feed_id = parse_id(feed_id)
        feed = await self.storage.update_feed(feed_id, active=active)
        if feed is None:
            raise NotFoundError(f"Feed with ID {feed_id} not found")

        state = "activated" if active else "deactivated"
        logger.info(f"Feed {feed.title} ({feed.id}) {state}")
        return ToggleResult(
            feed_id=feed.id,
            active=feed.active,
            message=f"Feed successfully {state}",
        )

    async def delete_feed(self, feed_id: Union[str, uuid.UUID]) -> None:
        """Delete a feed together with its articles and summaries."""
        feed_id = parse_id(feed_id)
        if not await self.storage.delete_feed(feed_id):
            raise NotFoundError(f"Feed with ID {feed_id} not found")
        logger.info(f"Deleted feed: {feed_id}")


def _require(value: str, name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"Feed {name} must not be empty")
    return value
