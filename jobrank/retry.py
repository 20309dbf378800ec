"""
Retry logic with exponential backoff for outbound HTTP calls.

Every request to the job board goes through ``fetch_with_retry``. Only a
small set of HTTP statuses (rate limiting, upstream hiccups) earn another
attempt; everything else fails on the spot.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

import requests

from .logger import get_logger

logger = get_logger()

RETRYABLE_STATUSES = frozenset({
    403,  # hh.ru answers throttled clients with Forbidden
    429,  # Too Many Requests
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
})


class RetryError(Exception):
    """Raised when a request fails for good.

    Attributes:
        attempts: Number of attempts made before giving up
        status: Last HTTP status seen, or None if no response arrived
        url: Target URL of the failed request
    """

    def __init__(self, message: str, attempts: int, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.attempts = attempts
        self.status = status
        self.url = url


@dataclass(frozen=True)
class RequestSpec:
    """Everything needed to issue one HTTP request."""

    url: str
    method: str = "GET"
    params: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 15.0


def should_retry_http_status(status_code: int) -> bool:
    """
    Check if HTTP status code indicates a retryable error.

    Args:
        status_code: HTTP status code

    Returns:
        True if should retry
    """
    return status_code in RETRYABLE_STATUSES


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait after the given (1-based) failed attempt."""
    return base_delay * 2 ** (attempt - 1)


def fetch_with_retry(
    session,
    spec: RequestSpec,
    max_attempts: int = 5,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    on_attempt: Optional[Callable[[int], None]] = None,
) -> requests.Response:
    """
    Issue a request, retrying retryable statuses with exponential backoff.

    Args:
        session: ``requests.Session`` (or compatible) used to send the request
        spec: Method, URL, query parameters and headers of the request
        max_attempts: Total number of attempts, including the first one
        base_delay: Delay in seconds after the first failed attempt
        sleep: Function used to wait between attempts
        on_attempt: Optional callback(attempt) invoked before each HTTP attempt

    Returns:
        The successful (2xx) response

    Raises:
        RetryError: On a transport failure, a non-retryable status, or a
            retryable status on the final attempt
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        if on_attempt:
            on_attempt(attempt)
        try:
            resp = session.request(
                spec.method,
                spec.url,
                params=dict(spec.params),
                headers=dict(spec.headers),
                timeout=spec.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Request failed without a response", url=spec.url, attempt=attempt, error=str(e))
            raise RetryError(
                f"Request to {spec.url} failed after {attempt} attempt(s): {e}",
                attempts=attempt,
                url=spec.url,
            ) from e

        status = resp.status_code
        if 200 <= status < 300:
            return resp

        if should_retry_http_status(status) and attempt < max_attempts:
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                f"Attempt {attempt} failed, retrying in {delay:g}s",
                url=spec.url,
                status=status,
            )
            sleep(delay)
            continue

        logger.error("Request failed", url=spec.url, status=status, attempts=attempt)
        raise RetryError(
            f"Request to {spec.url} failed after {attempt} attempt(s) (status {status})",
            attempts=attempt,
            status=status,
            url=spec.url,
        )

    # Unreachable: the last iteration always returns or raises
    raise RetryError(f"Unexpected retry exhaustion for {spec.url}", attempts=max_attempts, url=spec.url)
