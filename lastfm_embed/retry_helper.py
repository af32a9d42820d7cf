"""
Retry Helper - Exponential backoff for Last.fm list calls

Only errors that report themselves as retryable are retried; everything else
propagates on the first failure.
"""
import time
import logging
from functools import wraps
from typing import Callable, Type, Tuple

logger = logging.getLogger(__name__)


def _is_retryable(exc: Exception) -> bool:
    return getattr(exc, "retryable", True)


def retry_with_backoff(
    max_retries: int = 1,
    initial_delay: float = 0.5,
    backoff_multiplier: float = 2.0,
    max_delay: float = 5.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """
    Decorator that retries a function with exponential backoff

    Args:
        max_retries: Maximum number of retry attempts (0 disables retrying)
        initial_delay: Initial delay in seconds before first retry
        backoff_multiplier: Multiplier for delay after each retry
        max_delay: Maximum delay between retries in seconds
        exceptions: Tuple of exception types to catch and retry

    Returns:
        Decorated function that retries on failure

    Example:
        @retry_with_backoff(max_retries=2, exceptions=(UpstreamError,))
        def fetch_listing():
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if not _is_retryable(e):
                        raise

                    if attempt == max_retries:
                        if max_retries:
                            logger.error(f"{func.__name__} failed after {max_retries} retries: {e}")
                        raise

                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt + 1}/{max_retries + 1}), "
                        f"retrying in {delay:.1f}s: {e}"
                    )

                    time.sleep(delay)
                    delay = min(delay * backoff_multiplier, max_delay)

        return wrapper
    return decorator
