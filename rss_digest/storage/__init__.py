"""Persistence for feeds, articles and summaries."""

from .database import check_connection, create_engine, init_db
from .models import Article, Base, Feed, Summary, utcnow
from .repository import Storage

__all__ = [
    "Article",
    "Base",
    "Feed",
    "Storage",
    "Summary",
    "check_connection",
    "create_engine",
    "init_db",
    "utcnow",
]
