"""Engine creation and schema setup for the storage layer."""

from typing import Optional

from sqlalchemy import make_url, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..config import settings
from ..errors import DatabaseError
from ..utils import get_logger
from .models import Base

logger = get_logger(__name__)


def create_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """
    Create the async engine shared by all storage calls.

    Args:
        database_url: SQLAlchemy URL (defaults to DATABASE_URL)
        echo: Log emitted SQL (defaults to DATABASE_ECHO)

    Returns:
        AsyncEngine with its own connection pool
    """
    url = database_url or settings.database_url
    echo = settings.database_echo if echo is None else echo
    logger.info(f"Connecting to database: {_redact(url)}")
    return create_async_engine(url, echo=echo, pool_pre_ping=not url.startswith("sqlite"))


async def init_db(engine: AsyncEngine) -> None:
    """Create the feeds, articles and summaries tables if they are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema initialized")


async def check_connection(engine: AsyncEngine) -> None:
    """Run a trivial query; raises DatabaseError if the database is unreachable."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database health check failed: {e}")
        raise DatabaseError(f"Database unavailable: {e}") from e


def _redact(url: str) -> str:
    """Hide the password part of a database URL for logging."""
    return make_url(url).render_as_string(hide_password=True)
