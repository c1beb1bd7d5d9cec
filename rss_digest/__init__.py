"""RSS Digest - RSS/Atom ingestion with per-article and cross-feed AI summaries."""

__version__ = "0.1.0"
