"""RSS Digest - command-line entry point for feed ingestion and summaries."""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from . import __version__
from .aggregation import AggregationEngine
from .articles import ArticleService
from .config import settings
from .errors import AppError, ValidationError
from .feeds import FeedService, parse_id
from .ingestion import IngestionEngine
from .storage import Storage, check_connection, create_engine, init_db
from .summaries import SummaryService
from .summarizer import Summarizer
from .utils import get_logger, setup_logging

logger = get_logger(__name__)


def _timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO 8601 timestamp: {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="rss-digest",
        description="RSS Digest - ingest RSS/Atom feeds and summarize them with AI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rss-digest health
  rss-digest init-db
  rss-digest add-feed "Hacker News" https://news.ycombinator.com/rss
  rss-digest refresh --all
  rss-digest aggregate <feed-id> <feed-id> --hours-back 48
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--database-url", help="Override DATABASE_URL")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("health", help="Check that the database is reachable")
    commands.add_parser("init-db", help="Create the database tables")
    commands.add_parser("list-feeds", help="List all feeds by title")

    show = commands.add_parser("show-feed", help="Show one feed")
    show.add_argument("feed_id")

    add = commands.add_parser("add-feed", help="Subscribe to a feed")
    add.add_argument("title")
    add.add_argument("url")

    update = commands.add_parser("update-feed", help="Change a feed's title or URL")
    update.add_argument("feed_id")
    update.add_argument("--title")
    update.add_argument("--url")

    for name, help_text in (("activate", "Resume refreshing a feed"), ("deactivate", "Pause a feed")):
        toggle = commands.add_parser(name, help=help_text)
        toggle.add_argument("feed_id")

    delete = commands.add_parser("delete-feed", help="Delete a feed, its articles and summaries")
    delete.add_argument("feed_id")

    refresh = commands.add_parser("refresh", help="Fetch new articles")
    target = refresh.add_mutually_exclusive_group(required=True)
    target.add_argument("feed_id", nargs="?")
    target.add_argument("--all", action="store_true", help="Refresh every active feed")

    articles = commands.add_parser("articles", help="List stored articles, newest first")
    articles.add_argument("--feed", dest="feed_id")
    articles.add_argument("--limit", type=int, default=50)
    articles.add_argument("--offset", type=int, default=0)

    show_article = commands.add_parser("show-article", help="Show one article")
    show_article.add_argument("article_id")

    bulk = commands.add_parser("bulk-fetch", help="Refresh feeds and page through their articles")
    bulk.add_argument("feed_ids", nargs="*")
    bulk.add_argument("--start-date", type=_timestamp)
    bulk.add_argument("--end-date", type=_timestamp)
    bulk.add_argument("--limit", type=int, default=100)
    bulk.add_argument("--offset", type=int, default=0)
    bulk.add_argument("--no-refresh", action="store_true", help="Query stored articles only")

    summary = commands.add_parser("summary", help="Show an article's summary")
    summary.add_argument("article_id")

    summarize = commands.add_parser("summarize", help="Generate an article's summary")
    summarize.add_argument("article_id")

    aggregate = commands.add_parser("aggregate", help="Summarize recent articles across feeds")
    aggregate.add_argument("feed_ids", nargs="+")
    aggregate.add_argument("--hours-back", type=int, default=None, help="Window in hours (1-168, default 24)")

    return parser.parse_args(argv)


async def dispatch(args: argparse.Namespace, storage: Storage, ingestion: IngestionEngine) -> Any:
    """Run one command and return a JSON-serializable result."""
    feeds = FeedService(storage)
    articles = ArticleService(storage, ingestion)

    command = args.command
    if command == "health":
        await check_connection(storage.engine)
        return {"status": "ok", "version": __version__, "database": "ok"}
    if command == "init-db":
        await init_db(storage.engine)
        return {"success": True}
    if command == "list-feeds":
        return [feed.to_dict() for feed in await feeds.list_feeds()]
    if command == "show-feed":
        return (await feeds.get_feed(args.feed_id)).to_dict()
    if command == "add-feed":
        return (await feeds.create_feed(args.title, args.url)).to_dict()
    if command == "update-feed":
        if args.title is None and args.url is None:
            raise ValidationError("Nothing to update: pass --title and/or --url")
        return (await feeds.update_feed(args.feed_id, title=args.title, url=args.url)).to_dict()
    if command in ("activate", "deactivate"):
        return (await feeds.set_active(args.feed_id, command == "activate")).to_dict()
    if command == "delete-feed":
        await feeds.delete_feed(args.feed_id)
        return {"success": True}
    if command == "refresh":
        if args.all:
            return (await ingestion.refresh_all_active_feeds()).to_dict()
        feed_id = parse_id(args.feed_id)
        count = await ingestion.refresh_feed(feed_id)
        return {"success": True, "feed_id": str(feed_id), "articles_added": count}
    if command == "articles":
        found = await articles.list_articles(args.feed_id, limit=args.limit, offset=args.offset)
        return [article.to_dict() for article in found]
    if command == "show-article":
        return (await articles.get_article(args.article_id)).to_dict()
    if command == "bulk-fetch":
        result = await articles.bulk_fetch(
            args.feed_ids,
            start_date=args.start_date,
            end_date=args.end_date,
            limit=args.limit,
            offset=args.offset,
            refresh=not args.no_refresh,
        )
        return result.to_dict()

    summarizer = Summarizer()
    if command == "summary":
        found = await SummaryService(storage, summarizer).get_summary(args.article_id)
        return found.to_dict() if found else None
    if command == "summarize":
        return (await SummaryService(storage, summarizer).create_summary(args.article_id)).to_dict()
    if command == "aggregate":
        feed_ids = [parse_id(feed_id) for feed_id in args.feed_ids]
        result = await AggregationEngine(storage, summarizer).aggregate(feed_ids, args.hours_back)
        return result.to_dict()

    raise ValidationError(f"Unknown command: {command}")


async def run(args: argparse.Namespace) -> int:
    """Open storage, run the command, print the result."""
    engine = create_engine(args.database_url)
    ingestion = None
    try:
        storage = Storage(engine)
        ingestion = IngestionEngine(storage)
        if args.command not in ("init-db", "health"):
            await init_db(storage.engine)
        result = await dispatch(args, storage, ingestion)
    except AppError as e:
        logger.error(f"{args.command} failed: {e}")
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1
    finally:
        if ingestion is not None:
            ingestion.client.close()
        await engine.dispose()

    print(json.dumps(result, indent=2, default=str))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    log_level = "DEBUG" if args.debug else settings.log_level
    setup_logging(level=log_level, gcp_project_id=settings.gcp_project_id)

    logger.debug(f"Arguments: {args}")

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
