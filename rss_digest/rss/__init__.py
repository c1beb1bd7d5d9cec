"""Feed fetching, parsing and normalization."""

from .fetcher import FeedClient
from .normalizer import ArticleRecord, normalize
from .parser import RawEntry, parse_feed

__all__ = [
    "ArticleRecord",
    "FeedClient",
    "RawEntry",
    "normalize",
    "parse_feed",
]
