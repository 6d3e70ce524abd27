"""Async utilities for running blocking git and HTTP work off the event loop."""

import asyncio
import functools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Coroutine, Sequence, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


def create_slots(max_parallel: int) -> asyncio.Semaphore:
    """Create the admission semaphore for one coordinator run.

    The semaphore is handed to every unit of work explicitly; there is no
    module-level instance.

    Raises:
        ValueError: If *max_parallel* is less than 1.
    """
    if max_parallel < 1:
        raise ValueError(f"max_parallel must be >= 1, got {max_parallel}")
    logger.debug("Admission semaphore created: max_parallel=%d", max_parallel)
    return asyncio.Semaphore(max_parallel)


def create_worker_pool(max_parallel: int) -> ThreadPoolExecutor:
    """Create a thread pool with one worker per admission slot.

    Unlike asyncio's default executor, which stops at
    ``min(32, cpu_count + 4)`` threads, every admitted unit gets a worker.
    The caller owns the pool and must shut it down.

    Raises:
        ValueError: If *max_parallel* is less than 1.
    """
    if max_parallel < 1:
        raise ValueError(f"max_parallel must be >= 1, got {max_parallel}")
    return ThreadPoolExecutor(
        max_workers=max_parallel, thread_name_prefix="mirror-sync"
    )


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_limited(
    slots: asyncio.Semaphore,
    func: Callable[..., T],
    *args: Any,
    pool: Executor | None = None,
    **kwargs: Any,
) -> T:
    """Run a synchronous function in a thread pool while holding one slot.

    The slot is released on every exit path, including exceptions.

    Args:
        slots: Admission semaphore from ``create_slots()``
        func: Synchronous function to call
        *args: Positional arguments for func
        pool: Executor to run on, usually from ``create_worker_pool()``.
            ``None`` uses asyncio's default executor.
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    async with slots:
        if pool is None:
            return await asyncio.to_thread(func, *args, **kwargs)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            pool, functools.partial(func, *args, **kwargs)
        )


async def gather_all(
    coros: Sequence[Coroutine[Any, Any, T]],
) -> list[T]:
    """Run coroutines concurrently and wait for every one of them.

    Returns results in input order.  Exceptions propagate from the first
    failure, so callers that must never fail should catch inside each
    coroutine.

    Args:
        coros: Sequence of coroutines to run concurrently.

    Returns:
        List of results in the same order as input coroutines.
    """
    return list(await asyncio.gather(*coros))
