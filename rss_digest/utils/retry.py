"""Backoff policy for summarization provider calls."""

import logging

from openai import APIConnectionError, InternalServerError, RateLimitError
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import settings

logger = logging.getLogger(__name__)

# APITimeoutError is a subclass of APIConnectionError
TRANSIENT_PROVIDER_ERRORS = (APIConnectionError, RateLimitError, InternalServerError)


def provider_retry(attempts: int, max_wait: float = 30):
    """
    Build a retry decorator for sync or async provider calls.

    Only transient failures are retried; anything else, and the last
    transient failure, propagates unchanged.
    """
    return retry(
        retry=retry_if_exception_type(TRANSIENT_PROVIDER_ERRORS),
        wait=wait_exponential(multiplier=1, min=2, max=max_wait),
        stop=stop_after_attempt(attempts),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


openai_retry = provider_retry(settings.llm_retry_attempts)
