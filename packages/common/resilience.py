"""Bounded retries for provider calls (Ollama, Cloudinary) using tenacity.

Retries are deliberately few: once they are exhausted the error reaches the
enrichment handler, the message stays uncommitted and the broker redelivers
it later, which is the pipeline's long-term retry.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Rate limiting, and gateways in front of a model that is still loading.
RETRYABLE_STATUS_CODES = frozenset({429, 502, 503, 504})


def is_transient_error(
    exc: BaseException,
    retry_on: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError),
    retry_statuses: frozenset[int] = RETRYABLE_STATUS_CODES,
) -> bool:
    """Return True for errors worth another attempt against the same provider.

    Status errors are recognized by their ``response.status_code``, which
    covers ``httpx.HTTPStatusError``.
    """
    if isinstance(exc, retry_on):
        return True
    status_code = getattr(getattr(exc, "response", None), "status_code", None)
    return isinstance(status_code, int) and status_code in retry_statuses


def resilient_async_call(
    max_attempts: int = 3,
    min_wait: float = 1,
    max_wait: float = 10,
    retry_on: tuple[type[BaseException], ...] = (ConnectionError, TimeoutError),
    retry_statuses: frozenset[int] = RETRYABLE_STATUS_CODES,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry decorator for async provider calls with exponential backoff.

    The wrapped call must let HTTP status errors escape for status
    based retries to apply. The last error is re-raised unchanged.

    Args:
        max_attempts: Attempts including the first.
        min_wait: Minimum backoff in seconds.
        max_wait: Maximum backoff in seconds.
        retry_on: Exception types that are always retried.
        retry_statuses: HTTP status codes that are retried.

    Example:
        >>> @resilient_async_call(max_attempts=3, retry_on=(httpx.TransportError,))
        ... async def embed(text: str) -> list[float]:
        ...     ...
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception(lambda exc: is_transient_error(exc, retry_on, retry_statuses)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


__all__ = ["RETRYABLE_STATUS_CODES", "is_transient_error", "resilient_async_call"]
