# src/clients/retry.py — v2
"""Retry policy with exponential backoff for external API calls.

Only transient failures are retried: rate limiting, timeouts, connection
errors and 5xx responses. Any other failure is raised on the first attempt.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from lexresearch.core.errors import SourceUnavailable

logger = logging.getLogger(__name__)


class RetryExhausted(SourceUnavailable):
    """All retries exhausted for an external call."""

    def __init__(self, source: str, error_type: str, attempts: int, last_error: Exception):
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            source, f"failed after {attempts} attempts ({error_type}): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for a specific error type."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True


def default_retry_configs(max_retries: int = 2, base_delay_s: float = 1.0) -> dict[str, RetryConfig]:
    return {
        "rate_limit": RetryConfig(max_retries=max_retries, base_delay_s=base_delay_s * 2),
        "timeout": RetryConfig(max_retries=max_retries, base_delay_s=base_delay_s, backoff_factor=1.0),
        "connection": RetryConfig(max_retries=max_retries, base_delay_s=base_delay_s),
        "server_error": RetryConfig(max_retries=max_retries, base_delay_s=base_delay_s),
    }


def classify_error(error: Exception) -> str:
    """Classify an exception into a retry error type."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        if status == 429:
            return "rate_limit"
        if status >= 500:
            return "server_error"
        return "client_error"
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.TransportError):
        return "connection"
    return "unknown"


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    source: str = "unknown",
    retry_configs: dict[str, RetryConfig] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs: Any,
) -> Any:
    """Execute an async function with retry logic.

    Raises:
        RetryExhausted: A transient failure persisted past its retry budget.
        Exception: Non-transient failures are re-raised unchanged.
    """
    configs = retry_configs if retry_configs is not None else default_retry_configs()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except httpx.HTTPError as e:
            error_type = classify_error(e)
            attempts += 1
            config = configs.get(error_type)

            if config is None:
                raise
            if attempts > config.max_retries:
                raise RetryExhausted(source, error_type, attempts, e) from e

            delay = _compute_delay(config, attempts - 1)
            logger.warning(
                "Source '%s' — %s (attempt %d/%d), retrying in %.1fs",
                source, error_type, attempts, config.max_retries, delay,
            )
            await sleep(delay)
