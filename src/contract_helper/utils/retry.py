"""
Retry utilities for contract-helper.

Network reads and receipt lookups are retried with a small, fixed delay.
The backoff knobs are still available for callers that want exponential
growth or jitter, but the defaults keep every wait identical.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from functools import wraps
from typing import (
    Awaitable,
    Callable,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from contract_helper.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


class PermanentError(Exception):
    """
    Permanent error that should NOT be retried.

    Examples: malformed call arguments, unknown ABI method, reverted transaction.
    """

    pass


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    ``max_attempts`` counts the first call, so ``max_attempts=6`` means
    one call plus five retries.

    Example:
        ```python
        config = RetryConfig(
            max_attempts=11,
            base_delay_ms=1000,
            retryable_errors=(httpx.TransportError,),
        )
        ```
    """

    max_attempts: int = 6
    """Maximum number of attempts, first call included."""

    base_delay_ms: int = 1000
    """Delay in milliseconds between attempts."""

    max_delay_ms: int = 30000
    """Maximum delay in milliseconds (cap when exponential_base > 1)."""

    jitter: bool = False
    """Whether to add random jitter to delays."""

    exponential_base: float = 1.0
    """Base for exponential backoff; 1.0 keeps the delay fixed."""

    retryable_errors: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (Exception,)
    )
    """Tuple of exception types that should trigger a retry."""

    non_retryable_errors: Tuple[Type[Exception], ...] = field(
        default_factory=lambda: (PermanentError,)
    )
    """Exception types raised immediately even if they match retryable_errors."""


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate the delay before the next attempt.

    Args:
        attempt: Zero-based attempt number (0 = first retry)
        config: Retry configuration

    Returns:
        Delay in seconds
    """
    delay_ms = config.base_delay_ms * (config.exponential_base ** attempt)
    delay_ms = min(delay_ms, config.max_delay_ms)

    if config.jitter:
        delay_ms = random.uniform(0, delay_ms)

    return delay_ms / 1000


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
) -> T:
    """
    Execute async function with retry logic.

    The error of the last attempt is re-raised unchanged once the budget
    is spent.

    Args:
        fn: Async function to execute (no arguments)
        config: Retry configuration (uses defaults if None)

    Returns:
        Result of the function

    Raises:
        Last exception if all retries fail, or the first non-retryable one.

    Example:
        ```python
        receipt = await retry_async(
            lambda: w3.eth.get_transaction_receipt(tx_hash),
            RetryConfig(max_attempts=11),
        )
        ```
    """
    config = config or RetryConfig()
    last_error: Optional[Exception] = None

    for attempt in range(config.max_attempts):
        try:
            return await fn()
        except config.retryable_errors as e:
            if config.non_retryable_errors and isinstance(e, config.non_retryable_errors):
                raise
            last_error = e

            # Don't delay after last attempt
            if attempt < config.max_attempts - 1:
                delay = calculate_delay(attempt, config)
                _logger.debug(
                    "Attempt failed, retrying",
                    extra={
                        "attempt": attempt + 1,
                        "max_attempts": config.max_attempts,
                        "delay_s": delay,
                        "error": str(e),
                    },
                )
                await asyncio.sleep(delay)

    if last_error is not None:
        raise last_error

    raise RuntimeError("Retry exhausted without error")


async def retry(
    fn: Callable[[], Awaitable[T]],
    retries: int,
    delay_ms: int,
) -> T:
    """
    Run ``fn`` and retry it up to ``retries`` more times, ``delay_ms`` apart.

    Args:
        fn: Async function to execute (no arguments)
        retries: Number of retries after the first failure
        delay_ms: Fixed delay between attempts in milliseconds

    Returns:
        Result of the function
    """
    return await retry_async(
        fn,
        RetryConfig(max_attempts=retries + 1, base_delay_ms=delay_ms),
    )


def with_retry(
    config: Optional[RetryConfig] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator for adding retry logic to async functions.

    Args:
        config: Retry configuration (uses defaults if None)

    Returns:
        Decorator function

    Example:
        ```python
        @with_retry(RetryConfig(max_attempts=3, base_delay_ms=200))
        async def latest_block(w3: AsyncWeb3) -> int:
            return await w3.eth.block_number
        ```
    """
    def decorator(
        fn: Callable[..., Awaitable[T]],
    ) -> Callable[..., Awaitable[T]]:
        @wraps(fn)
        async def wrapper(*args: object, **kwargs: object) -> T:
            return await retry_async(
                lambda: fn(*args, **kwargs),
                config,
            )
        return wrapper
    return decorator
