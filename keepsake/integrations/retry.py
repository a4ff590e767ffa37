"""
Retry policy for HTTP collaborators (email, storage, auth).
"""

from typing import Any, Callable

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class TransientHTTPError(Exception):
    """Raised for responses worth retrying (rate limits, 5xx)."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {message}" if message else f"HTTP {status_code}")


def raise_for_transient(response: httpx.Response) -> None:
    """Turn rate limit and server errors into TransientHTTPError."""
    if response.status_code in RETRYABLE_STATUS_CODES:
        raise TransientHTTPError(response.status_code, response.text[:200])


def with_retry(func: Callable) -> Callable:
    """
    Decorator adding exponential backoff to collaborator calls.

    Retries transport errors and transient HTTP statuses:
    - Initial wait: 1 second
    - Maximum wait: 30 seconds
    - Maximum attempts: 4
    """

    @retry(
        wait=wait_exponential(min=1, max=30),
        stop=stop_after_attempt(4),
        retry=retry_if_exception_type((TransientHTTPError, httpx.TransportError)),
        reraise=True,
    )
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper
