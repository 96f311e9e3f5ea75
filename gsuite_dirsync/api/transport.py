"""
HTTP transport helpers shared by the API clients.

Provides the API exception hierarchy and an exponential backoff wrapper
for read requests. Writes are sent once and never retried.
"""

import logging
import time
from collections.abc import Callable

import requests

# Retry configuration defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_RETRY_DELAY = 1.0  # seconds
DEFAULT_MAX_RETRY_DELAY = 30.0  # seconds

# Default timeout for a single HTTP request (seconds)
DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised when a remote API operation fails."""

    pass


class RateLimitError(APIError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass


def send_with_retry(
    send: Callable[[], requests.Response],
    operation_name: str,
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_retry_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
    max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY,
) -> requests.Response:
    """
    Send a request with exponential backoff on throttling and server errors.

    Retries 429 responses, 5xx responses and connection errors. Any other
    response is returned immediately for the caller to inspect.

    Args:
        send: Callable performing the request
        operation_name: Name for logging purposes
        max_retries: Total attempts before giving up
        initial_retry_delay: Initial backoff delay in seconds
        max_retry_delay: Maximum backoff delay in seconds

    Returns:
        The final response

    Raises:
        RateLimitError: If still throttled after all attempts
        APIError: If the connection keeps failing
    """
    delay = initial_retry_delay
    attempts = max(max_retries, 1)

    for attempt in range(attempts):
        last_attempt = attempt == attempts - 1

        try:
            response = send()
        except (requests.ConnectionError, requests.Timeout) as e:
            if last_attempt:
                raise APIError(f"{operation_name} failed: {e}") from e
            logger.warning(
                f"{operation_name} connection error, retrying in {delay:.1f}s "
                f"(attempt {attempt + 1}/{attempts})"
            )
            time.sleep(delay)
            delay = min(delay * 2, max_retry_delay)
            continue

        status_code = response.status_code

        if status_code == 429:
            if last_attempt:
                raise RateLimitError(
                    f"Rate limit exceeded for {operation_name} "
                    f"after {attempts} attempts"
                )
            logger.warning(
                f"{operation_name} rate limited, retrying in {delay:.1f}s "
                f"(attempt {attempt + 1}/{attempts})"
            )
            time.sleep(delay)
            delay = min(delay * 2, max_retry_delay)
            continue

        if status_code >= 500 and not last_attempt:
            logger.warning(
                f"{operation_name} server error ({status_code}), "
                f"retrying in {delay:.1f}s"
            )
            time.sleep(delay)
            delay = min(delay * 2, max_retry_delay)
            continue

        return response

    # Unreachable: the last attempt always returns or raises
    raise APIError(f"{operation_name} failed after all retries")
