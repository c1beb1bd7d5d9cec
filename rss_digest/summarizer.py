"""LLM-based article and cross-feed summarization for RSS Digest."""

from typing import TYPE_CHECKING, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from .config import settings
from .errors import SummarizationError
from .utils import get_logger, openai_retry

if TYPE_CHECKING:
    from .aggregation import FeedDigest

logger = get_logger(__name__)

ARTICLE_SYSTEM_PROMPT = (
    "You are an AI assistant that summarizes articles. "
    "Provide a concise and informative summary in 2-3 paragraphs. "
    "Focus on the key points and main takeaways."
)

ARTICLE_USER_PROMPT_TEMPLATE = """Title: {title}

Content: {content}"""

AGGREGATE_SYSTEM_PROMPT = """You are a news editor writing a briefing that covers several RSS feeds at once.

Write one coherent narrative, not a list of per-article summaries:
- Open with the most significant developments across all feeds
- Group related stories together even when they come from different feeds
- Mention which feed a story came from when it matters for context
- Point out recurring themes, disagreements and notable outliers
- Close with a short paragraph on what to watch next

Keep it to 3-6 paragraphs of plain prose without headings."""

AGGREGATE_USER_PROMPT_TEMPLATE = """Summarize what was published in the last {hours_back} hours across {feed_count} feeds ({article_count} articles).

{feeds}"""

# Prompt size guards
MAX_CONTENT_CHARS = 12000
MAX_ARTICLES_PER_FEED = 25
MAX_SUMMARY_CHARS = 600


class Summarizer:
    """Generates article and aggregate summaries using OpenAI's LLM."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        model: Optional[str] = None,
    ):
        """
        Initialize the summarizer.

        Args:
            client: AsyncOpenAI client instance (created lazily if not provided)
            model: Model name (defaults to LLM_MODEL)
        """
        self._client = client
        self.model = model or settings.llm_model

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.openai_configured:
                raise SummarizationError(
                    "OpenAI API key not configured. Set OPENAI_API_KEY in the environment or .env"
                )
            self._client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                timeout=settings.llm_timeout_seconds,
            )
        return self._client

    async def summarize_article(self, title: str, content: str) -> str:
        """
        Summarize a single article.

        Args:
            title: Article title
            content: Article body (HTML is fine)

        Returns:
            Summary text

        Raises:
            SummarizationError: If the provider is unconfigured or fails
        """
        logger.info(f"Generating summary for article: {title[:50]} using model: {self.model}")

        if len(content) > MAX_CONTENT_CHARS:
            content = content[:MAX_CONTENT_CHARS] + "..."

        user_prompt = ARTICLE_USER_PROMPT_TEMPLATE.format(title=title, content=content)
        summary = await self._generate(
            ARTICLE_SYSTEM_PROMPT,
            user_prompt,
            max_tokens=settings.llm_max_tokens,
        )
        logger.info("Successfully generated summary")
        return summary

    async def summarize_aggregate(self, feeds: Sequence["FeedDigest"], hours_back: int) -> str:
        """
        Synthesize one narrative across several feeds.

        Args:
            feeds: Per-feed article groups
            hours_back: Size of the time window the groups cover

        Returns:
            Narrative summary text

        Raises:
            SummarizationError: If the provider is unconfigured or fails
        """
        article_count = sum(feed.article_count for feed in feeds)
        logger.info(
            f"Generating aggregated summary for {len(feeds)} feeds, "
            f"{article_count} articles, {hours_back}h window"
        )

        user_prompt = AGGREGATE_USER_PROMPT_TEMPLATE.format(
            hours_back=hours_back,
            feed_count=len(feeds),
            article_count=article_count,
            feeds=build_feed_digest_text(feeds),
        )
        logger.debug(f"Aggregate prompt: {user_prompt[:200]}...")

        summary = await self._generate(
            AGGREGATE_SYSTEM_PROMPT,
            user_prompt,
            max_tokens=settings.llm_aggregate_max_tokens,
        )
        logger.info(f"Generated aggregated summary: {len(summary)} characters")
        return summary

    async def _generate(self, system_prompt: str, user_prompt: str, max_tokens: int) -> str:
        """Run one chat completion and translate provider failures."""
        try:
            content = await self._complete(system_prompt, user_prompt, max_tokens)
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise SummarizationError(f"OpenAI API error: {e}") from e

        if not content or not content.strip():
            raise SummarizationError("No response content from OpenAI")
        return content.strip()

    @openai_retry
    async def _complete(self, system_prompt: str, user_prompt: str, max_tokens: int) -> Optional[str]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=settings.llm_temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


def build_feed_digest_text(feeds: Sequence["FeedDigest"]) -> str:
    """Render feed groups as the plain-text body of the aggregate prompt."""
    sections = []
    for feed in feeds:
        lines = [f"## {feed.feed_title} ({feed.article_count} articles)"]
        for article in feed.articles[:MAX_ARTICLES_PER_FEED]:
            published = article.published_at.strftime("%Y-%m-%d %H:%M UTC")
            lines.append(f"- {article.title} ({published})")
            if article.summary:
                summary = article.summary
                if len(summary) > MAX_SUMMARY_CHARS:
                    summary = summary[: MAX_SUMMARY_CHARS - 3] + "..."
                lines.append(f"  Summary: {summary}")
        hidden = feed.article_count - MAX_ARTICLES_PER_FEED
        if hidden > 0:
            lines.append(f"- ... and {hidden} more articles")
        sections.append("\n".join(lines))
    return "\n\n".join(sections)
