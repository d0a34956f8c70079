"""Retry logic with exponential backoff for image downloads.

Transient failures (timeouts, dropped connections, 5xx, 408 and 429 responses)
are retried with exponential backoff (base, 2x base, 4x base, ...). Everything
else, including oversized images and other 4xx responses, fails fast.
"""

import logging
import time
from typing import Callable, TypeVar

import requests

from ..error_handling.errors import NetworkError

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def retry_with_backoff(
    func: Callable[..., T],
    *args,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    **kwargs,
) -> T:
    """Call func, retrying transient failures with exponential backoff.

    Args:
        func: The function to execute with retry logic
        *args: Positional arguments to pass to the function
        max_attempts: Total number of attempts, including the first
        base_delay: Wait before the second attempt, in seconds; doubles each retry
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        The last exception raised by func once attempts are exhausted, or
        immediately for non-retryable errors

    Example:
        >>> retry_with_backoff(fetch, url, max_attempts=3, base_delay=1.0)
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            if not is_retryable_error(e):
                raise

            if attempt >= attempts:
                logger.warning(f"Giving up after {attempts} attempt(s): {e}")
                raise

            wait_time = base_delay * 2 ** (attempt - 1)
            logger.info(
                f"Transient failure, retrying in {wait_time:g}s "
                f"(attempt {attempt + 1}/{attempts}): {e}"
            )
            time.sleep(wait_time)

    # The loop always returns or raises
    raise AssertionError("retry loop exited without a result")


def is_retryable_error(exception: Exception) -> bool:
    """Check whether an exception represents a transient network failure.

    Args:
        exception: The exception to check

    Returns:
        True if another attempt may succeed, False otherwise
    """
    if isinstance(exception, NetworkError):
        if not exception.retryable:
            return False
        status = exception.status_code
        return status is None or status >= 500 or status in RETRYABLE_STATUS_CODES

    if isinstance(exception, (requests.Timeout, requests.ConnectionError)):
        return True

    return False
