"""
Retry Logic

tenacity-based retry with exponential backoff and jitter, used around
upstream HTTP calls. Only transient transport failures are retried; an
HTTP error status from Chart-IMG is an answer, not a transient failure.
"""

import logging

import httpx
from tenacity import (
    after_log,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from chart_gateway.core.config.constants import MAX_RETRIES, RETRY_BASE_DELAY, RETRY_MAX_DELAY
from chart_gateway.core.logging import get_logger

logger = get_logger(__name__)

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (httpx.TransportError,)

# Failures before the request left this process; safe to resend a POST.
CONNECT_ERRORS: tuple[type[BaseException], ...] = (httpx.ConnectError, httpx.ConnectTimeout)


def create_retry_decorator(
    max_attempts: int = MAX_RETRIES,
    base_delay: float = RETRY_BASE_DELAY,
    max_delay: float = RETRY_MAX_DELAY,
    retry_exceptions: tuple = TRANSIENT_ERRORS
):
    """
    Create a retry decorator with exponential backoff and jitter.

    Jitter prevents thundering herd on retries.
    """
    return retry(
        stop=stop_after_attempt(max(max_attempts, 1)),
        wait=wait_exponential_jitter(
            initial=base_delay,
            max=max_delay,
            jitter=base_delay
        ),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=True
    )
