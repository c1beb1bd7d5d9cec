"""Logging setup for the command line, with optional GCP Cloud Logging."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "urllib3", "aiosqlite")


def setup_logging(level: str = "INFO", gcp_project_id: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Records go to stderr; stdout is reserved for command results.

    Args:
        level: Log level name, unknown names fall back to INFO
        gcp_project_id: Also ship records to Cloud Logging for this project
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    library_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    if gcp_project_id:
        _attach_cloud_logging(gcp_project_id, log_level)


def _attach_cloud_logging(project_id: str, log_level: int) -> None:
    try:
        import google.cloud.logging
    except ImportError:
        logging.warning("google-cloud-logging is not installed; install the 'gcp' extra")
        return

    try:
        client = google.cloud.logging.Client(project=project_id)
        client.setup_logging(log_level=log_level)
    except Exception as e:
        logging.warning(f"Cloud Logging unavailable for project {project_id}: {e}")
        return
    logging.info(f"GCP Cloud Logging enabled for project: {project_id}")


def get_logger(name: str) -> logging.Logger:
    """Module logger; configuration happens once in setup_logging."""
    return logging.getLogger(name)
