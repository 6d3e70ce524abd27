"""Async helpers shared by the directory client and the mirror engine."""

from .async_utils import (
    create_slots,
    create_worker_pool,
    gather_all,
    run_sync,
    run_sync_limited,
)

__all__ = ["create_slots", "create_worker_pool", "gather_all", "run_sync", "run_sync_limited"]
