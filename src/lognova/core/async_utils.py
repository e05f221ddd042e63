"""Async utilities for concurrent collectors."""

import asyncio
from collections.abc import Awaitable, Callable
from concurrent.futures import Executor
from typing import TypeVar

T = TypeVar("T")


async def run_with_timeout(
    coro: Awaitable[T],
    timeout: float,
    timeout_message: str = "Operation timed out",
) -> T:
    """Run a coroutine with a timeout.

    Args:
        coro: Coroutine to run
        timeout: Timeout in seconds
        timeout_message: Message for timeout error

    Returns:
        Result of the coroutine

    Raises:
        TimeoutError: If the operation times out
    """
    from lognova.core.exceptions import TimeoutError

    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError:
        raise TimeoutError(timeout_message, timeout_seconds=timeout)


async def run_blocking(
    func: Callable[[], T],
    timeout: float,
    timeout_message: str = "Operation timed out",
    executor: Executor | None = None,
) -> T:
    """Run a blocking callable in a worker thread, bounded by a timeout.

    The callable keeps running in its thread after a timeout; callers are
    expected to bound their own I/O (subprocess and HTTP timeouts) as well.
    Pass a dedicated ``executor`` when the caller must not wait for such
    threads on the way out (``asyncio.run`` joins the default executor).
    """
    loop = asyncio.get_running_loop()
    return await run_with_timeout(
        loop.run_in_executor(executor, func),
        timeout=timeout,
        timeout_message=timeout_message,
    )


def run_sync(coro: Awaitable[T]) -> T:
    """Run an async function synchronously.

    This is useful for integrating async code with Click commands.

    Args:
        coro: Coroutine to run

    Returns:
        Result of the coroutine
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        # If we're already in an async context, create a new loop
        import concurrent.futures

        with concurrent.futures.ThreadPoolExecutor() as pool:
            future = pool.submit(asyncio.run, coro)
            return future.result()
    else:
        return asyncio.run(coro)
