"""Resilience helpers for calls into the content service and data store.

Everything here assumes a single asyncio event loop. Durations are in
seconds.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from time import perf_counter
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Sequence, TypeVar

from engines.errors import is_retryable_error

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_HISTORY_LENGTH = 50
DEFAULT_BATCH_SIZE = 5
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0


def optimize_message_history(messages: Sequence[T], max_length: int = DEFAULT_HISTORY_LENGTH) -> Sequence[T]:
    """Keep only the newest ``max_length`` entries; short histories are returned as-is."""
    if max_length < 0:
        raise ValueError("max_length must not be negative")
    if len(messages) <= max_length:
        return messages
    if max_length == 0:
        return messages[:0]
    return messages[-max_length:]


def cleanup_unused_data(data: Any) -> Any:
    """Rebuild ``data`` without mapping keys whose value is None, at any depth."""
    if isinstance(data, list):
        return [cleanup_unused_data(item) for item in data]
    if isinstance(data, tuple):
        return tuple(cleanup_unused_data(item) for item in data)
    if isinstance(data, Mapping):
        return {key: cleanup_unused_data(value) for key, value in data.items() if value is not None}
    return data


async def measure_performance(operation: Callable[[], Awaitable[T]], label: str) -> T:
    """Await ``operation`` and log how long it took, whether it succeeded or not."""
    start = perf_counter()
    try:
        result = await operation()
    except Exception as exc:
        elapsed_ms = (perf_counter() - start) * 1000
        logger.error("%s failed after %.2fms: %s", label, elapsed_ms, exc)
        raise
    elapsed_ms = (perf_counter() - start) * 1000
    logger.info("%s took %.2fms", label, elapsed_ms)
    return result


async def batch_process(
    items: Iterable[T],
    process_fn: Callable[[T], Awaitable[R]],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> List[R]:
    """Run ``process_fn`` over ``items`` with at most ``batch_size`` calls in flight.

    Each chunk finishes before the next one starts and results keep the input
    order. The first failure propagates and abandons the remaining chunks.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    pending = list(items)
    results: List[R] = []
    for start in range(0, len(pending), batch_size):
        chunk = pending[start : start + batch_size]
        results.extend(await asyncio.gather(*(process_fn(item) for item in chunk)))
    return results


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
    *,
    label: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Await ``operation``, retrying only errors that ``is_retryable_error`` accepts.

    The wait before retry ``n`` (0-based) is ``retry_delay * 2 ** n``.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= max_retries or not is_retryable_error(exc):
                logger.error(
                    "%s failed (attempt %d/%d): %s", label, attempt + 1, max_retries + 1, exc
                )
                raise
            delay = retry_delay * (2 ** attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                label,
                attempt + 1,
                max_retries + 1,
                delay,
                exc,
            )
            await sleep(delay)
            attempt += 1


def debounce(func: Callable[..., Any], wait: float) -> Callable[..., None]:
    """Delay ``func`` until ``wait`` seconds have passed without another call.

    Must be invoked from code running on an event loop. The returned wrapper
    exposes ``cancel()`` to drop a pending call. Coroutine functions run as
    tasks held in ``pending`` until they finish; failures are logged.
    """
    handle: asyncio.TimerHandle | None = None
    # the loop only keeps weak references to tasks
    tasks: set = set()

    def _done(task: asyncio.Task) -> None:
        tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced call to %s failed: %s", getattr(func, "__name__", func), exc)

    def _fire(args: tuple, kwargs: dict) -> None:
        nonlocal handle
        handle = None
        result = func(*args, **kwargs)
        if asyncio.iscoroutine(result):
            task = asyncio.ensure_future(result)
            tasks.add(task)
            task.add_done_callback(_done)

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        nonlocal handle
        if handle is not None:
            handle.cancel()
        loop = asyncio.get_running_loop()
        handle = loop.call_later(wait, _fire, args, kwargs)

    def cancel() -> None:
        nonlocal handle
        if handle is not None:
            handle.cancel()
            handle = None

    wrapper.cancel = cancel  # type: ignore[attr-defined]
    wrapper.pending = tasks  # type: ignore[attr-defined]
    return wrapper


def throttle(
    func: Callable[..., Any],
    limit: float,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> Callable[..., None]:
    """Run ``func`` at most once per ``limit`` seconds; calls inside the window are dropped."""
    window_started: float | None = None

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        nonlocal window_started
        now = clock()
        if window_started is not None and now - window_started < limit:
            return
        window_started = now
        func(*args, **kwargs)

    return wrapper
