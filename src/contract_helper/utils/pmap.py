"""
Concurrency-bounded async mapper.

``amap`` maps an iterable (sync or async, elements may be awaitables)
through a sync or async mapper, keeping at most ``concurrency`` mappings
in flight. Results come back in input order.

Example:
    ```python
    balances = await amap(
        holders,
        lambda holder, _index: helper.call(balance_of(holder)),
        concurrency=4,
    )
    ```
"""

from __future__ import annotations

import asyncio
import inspect
import math
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    List,
    Optional,
    Tuple,
    Union,
)

from contract_helper.errors.base import AbortError, AggregateError


class _MapSkip:
    def __repr__(self) -> str:
        return "MAP_SKIP"


MAP_SKIP = _MapSkip()
"""Return this from a mapper to leave the element out of the result."""


async def _aenumerate(iterable: Any) -> AsyncIterator[Tuple[int, Any]]:
    index = 0
    if hasattr(iterable, "__aiter__"):
        async for item in iterable:
            yield index, item
            index += 1
    else:
        for item in iterable:
            yield index, item
            index += 1


def _validate(iterable: Any, mapper: Any, concurrency: Union[int, float]) -> None:
    if not hasattr(iterable, "__aiter__") and not hasattr(iterable, "__iter__"):
        raise TypeError("Expected `iterable` to be Iterable or AsyncIterable")
    if not callable(mapper):
        raise TypeError("Mapper function is required")
    valid = concurrency == math.inf or (
        isinstance(concurrency, int)
        and not isinstance(concurrency, bool)
        and concurrency >= 1
    )
    if not valid:
        raise TypeError(
            f"Expected concurrency to be an integer >= 1 or math.inf, got {concurrency!r}"
        )


async def amap(
    iterable: Any,
    mapper: Callable[[Any, int], Any],
    *,
    concurrency: Union[int, float] = math.inf,
    stop_on_error: bool = True,
    signal: Optional[asyncio.Event] = None,
) -> List[Any]:
    """
    Map ``iterable`` through ``mapper`` with bounded concurrency.

    Args:
        iterable: Iterable or async iterable of elements or awaitables.
        mapper: ``mapper(element, index)``, sync or async.
        concurrency: Maximum number of mappings in flight (``math.inf`` for no cap).
        stop_on_error: Raise the first error and cancel in-flight work when True.
            When False, every element is processed and all errors are raised
            together as an :class:`AggregateError`.
        signal: Optional event; setting it aborts the mapping with :class:`AbortError`.

    Returns:
        Mapped values in input order, without elements mapped to :data:`MAP_SKIP`.

    Raises:
        TypeError: On invalid arguments.
        AbortError: If ``signal`` is set before or during the mapping.
        AggregateError: In collect-all mode when at least one mapping failed.
    """
    _validate(iterable, mapper, concurrency)
    if signal is not None and signal.is_set():
        raise AbortError()

    results: Dict[int, Any] = {}
    errors: List[BaseException] = []
    failed = asyncio.Event()
    semaphore = None if concurrency == math.inf else asyncio.Semaphore(int(concurrency))
    tasks: List["asyncio.Task[None]"] = []

    async def run(index: int, element: Any) -> None:
        try:
            if inspect.isawaitable(element):
                element = await element
            value = mapper(element, index)
            if inspect.isawaitable(value):
                value = await value
            results[index] = value
        except Exception as e:
            errors.append(e)
            if stop_on_error:
                failed.set()
        finally:
            if semaphore is not None:
                semaphore.release()

    async def schedule() -> None:
        async for index, element in _aenumerate(iterable):
            if semaphore is not None:
                await semaphore.acquire()
            if failed.is_set():
                break
            tasks.append(asyncio.ensure_future(run(index, element)))
        if tasks:
            await asyncio.wait(tasks)

    main = asyncio.ensure_future(schedule())
    watchers = [asyncio.ensure_future(failed.wait())]
    if signal is not None:
        watchers.append(asyncio.ensure_future(signal.wait()))

    try:
        await asyncio.wait([main, *watchers], return_when=asyncio.FIRST_COMPLETED)
    finally:
        for watcher in watchers:
            watcher.cancel()
        if not main.done() or (main.done() and not main.cancelled() and main.exception()):
            main.cancel()
            for task in tasks:
                task.cancel()
            await asyncio.gather(main, *tasks, return_exceptions=True)

    if failed.is_set():
        raise errors[0]
    if main.cancelled():
        raise AbortError()
    main.result()
    if errors:
        raise AggregateError(errors)

    return [results[i] for i in sorted(results) if results[i] is not MAP_SKIP]
