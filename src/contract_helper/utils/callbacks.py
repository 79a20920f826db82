"""
Promise-to-callback adapters.

A result is delivered twice: returned (or raised) to the awaiting caller,
and handed to an optional ``success``/``error`` pair. Exceptions raised by
the callbacks themselves never change what the caller receives.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from contract_helper.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


@dataclass
class PromiseCallback:
    """Optional success/error pair. Either may be sync or async."""

    success: Optional[Callable[[Any], Any]] = None
    error: Optional[Callable[[BaseException], Any]] = None


async def maybe_await(fn: Callable[..., Any], *args: Any) -> Any:
    """Call ``fn`` and await the result when it is awaitable."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


async def notify_error(callback: Any, error: BaseException) -> None:
    """
    Hand ``error`` to ``callback.error`` if present.

    Anything the error callback raises is logged and dropped.
    """
    handler = getattr(callback, "error", None) if callback is not None else None
    if handler is None:
        return
    try:
        await maybe_await(handler, error)
    except Exception as e:
        _logger.warning(
            "Error callback raised",
            extra={"error": str(error), "callback_error": str(e)},
        )


async def notify_success(callback: Any, value: Any) -> None:
    """
    Hand ``value`` to ``callback.success`` if present.

    If the success callback raises, that exception goes to the error callback.
    """
    handler = getattr(callback, "success", None) if callback is not None else None
    if handler is None:
        return
    try:
        await maybe_await(handler, value)
    except Exception as e:
        await notify_error(callback, e)


async def run_promise_with_callback(awaitable: Awaitable[T], callback: Any = None) -> T:
    """
    Await ``awaitable`` and mirror its outcome into ``callback``.

    Args:
        awaitable: Coroutine or future to settle.
        callback: Object with optional ``success`` and ``error`` attributes.

    Returns:
        The awaited value, unchanged by whatever the callbacks do.

    Raises:
        Whatever ``awaitable`` raised, after ``callback.error`` saw it.
    """
    try:
        result = await awaitable
    except Exception as e:
        await notify_error(callback, e)
        raise
    await notify_success(callback, result)
    return result


async def run_with_callback(fn: Callable[[], Awaitable[T]], callback: Any = None) -> T:
    """Same as :func:`run_promise_with_callback` for a zero-argument async function."""
    return await run_promise_with_callback(fn(), callback)
