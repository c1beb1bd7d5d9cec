"""Per-article summaries."""

import uuid
from typing import Optional, Union

from .errors import BadRequestError, NotFoundError
from .feeds import parse_id
from .storage import Storage, Summary
from .summarizer import Summarizer
from .utils import get_logger

logger = get_logger(__name__)


class SummaryService:
    """Creates and reads the single summary an article may have."""

    def __init__(self, storage: Storage, summarizer: Summarizer):
        self.storage = storage
        self.summarizer = summarizer

    async def get_summary(self, article_id: Union[str, uuid.UUID]) -> Optional[Summary]:
        article_id = parse_id(article_id, kind="article")
        if await self.storage.get_article(article_id) is None:
            raise NotFoundError(f"Article with ID {article_id} not found")
        return await self.storage.get_latest_summary(article_id)

    async def create_summary(self, article_id: Union[str, uuid.UUID]) -> Summary:
        """
        Generate and store the summary of an article.

        Raises:
            NotFoundError: Unknown article
            BadRequestError: The article already has a summary
            SummarizationError: Provider failure
        """
        article_id = parse_id(article_id, kind="article")
        article = await self.storage.get_article(article_id)
        if article is None:
            raise NotFoundError(f"Article with ID {article_id} not found")

        # Skip the provider call when the answer is already known
        if await self.storage.get_latest_summary(article_id) is not None:
            raise BadRequestError(f"Summary for article {article_id} already exists")

        content = await self.summarizer.summarize_article(article.title, article.content)

        summary = await self.storage.insert_summary_if_absent(
            article_id, content, self.summarizer.model
        )
        if summary is None:
            raise BadRequestError(f"Summary for article {article_id} already exists")

        logger.info(f"Created summary for article: {article_id}")
        return summary
