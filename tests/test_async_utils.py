"""
Tests for async_utils module.

Covers create_slots, create_worker_pool, run_sync, run_sync_limited, and
gather_all.
"""

import threading
import time

import pytest

from mirror_sync.core.async_utils import (
    create_slots,
    create_worker_pool,
    gather_all,
    run_sync,
    run_sync_limited,
)


def _sync_add(a: int, b: int) -> int:
    """Simple sync function for testing."""
    return a + b


def _sync_identity(x):
    """Return input unchanged."""
    return x


async def test_run_sync_calls_function():
    """run_sync delegates to asyncio.to_thread with correct args."""
    result = await run_sync(_sync_add, 3, 4)
    assert result == 7


async def test_run_sync_passes_kwargs():
    """run_sync forwards keyword arguments."""

    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    result = await run_sync(_kw_func, name="world")
    assert result == "hello world"


def test_create_slots_rejects_zero():
    with pytest.raises(ValueError, match="max_parallel"):
        create_slots(0)


async def test_run_sync_limited_returns_result():
    slots = create_slots(2)
    result = await run_sync_limited(slots, _sync_add, 10, 20)
    assert result == 30


async def test_run_sync_limited_releases_slot_on_error():
    """A failing call gives its slot back."""
    slots = create_slots(1)

    def _boom():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await run_sync_limited(slots, _boom)

    # The single slot is free again
    assert await run_sync_limited(slots, _sync_identity, 5) == 5
    assert not slots.locked()


async def test_gather_all_preserves_order():
    slots = create_slots(3)
    coros = [run_sync_limited(slots, _sync_identity, i) for i in range(5)]

    results = await gather_all(coros)
    assert results == [0, 1, 2, 3, 4]


async def test_gather_all_empty_list():
    results = await gather_all([])
    assert results == []


async def test_run_sync_limited_concurrency_bound():
    """run_sync_limited actually limits concurrency via the semaphore."""
    slots = create_slots(2)

    max_concurrent = 0
    current_concurrent = 0
    lock = threading.Lock()

    def _track_concurrency(val):
        nonlocal max_concurrent, current_concurrent
        with lock:
            current_concurrent += 1
            max_concurrent = max(max_concurrent, current_concurrent)
        time.sleep(0.05)  # Hold for a bit so others overlap
        with lock:
            current_concurrent -= 1
        return val

    coros = [run_sync_limited(slots, _track_concurrency, i) for i in range(6)]
    results = await gather_all(coros)

    assert results == [0, 1, 2, 3, 4, 5]
    assert max_concurrent == 2


def test_create_worker_pool_rejects_zero():
    with pytest.raises(ValueError, match="max_parallel must be >= 1"):
        create_worker_pool(0)


async def test_run_sync_limited_uses_given_pool():
    slots = create_slots(1)
    pool = create_worker_pool(1)
    try:
        name = await run_sync_limited(
            slots, lambda: threading.current_thread().name, pool=pool
        )
    finally:
        pool.shutdown(wait=True)

    assert name.startswith("mirror-sync")


async def test_run_sync_limited_pool_forwards_kwargs():
    def _kw_func(a, *, b):
        return a - b

    pool = create_worker_pool(1)
    try:
        result = await run_sync_limited(create_slots(1), _kw_func, 10, b=4, pool=pool)
    finally:
        pool.shutdown(wait=True)

    assert result == 6


async def test_worker_pool_runs_every_slot_at_once():
    """A pool sized to the slot count lets all admitted units overlap."""
    width = 40
    slots = create_slots(width)
    pool = create_worker_pool(width)
    barrier = threading.Barrier(width, timeout=5)

    def _wait_for_all(val):
        barrier.wait()
        return val

    try:
        coros = [
            run_sync_limited(slots, _wait_for_all, i, pool=pool) for i in range(width)
        ]
        results = await gather_all(coros)
    finally:
        pool.shutdown(wait=True)

    assert results == list(range(width))
