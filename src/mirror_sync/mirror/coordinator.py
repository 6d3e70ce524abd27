"""Bounded fan-out of sync executions over one organization.

One asyncio task per repository; each task must hold one admission slot
while its clone/pull/recover work runs on a worker thread from a pool
sized to the slot count.  Tasks are admitted in listing order and complete
in any order.  ``run`` returns once every task is terminal and never raises
for a single repository: unexpected exceptions are converted into
``FAILED`` results.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from typing import Callable

from ..core.async_utils import (
    create_slots,
    create_worker_pool,
    gather_all,
    run_sync_limited,
)
from .executor import SyncExecutor
from .hooks import install_hooks
from .models import (
    MirrorAction,
    MirrorResult,
    MirrorState,
    OrgSyncRequest,
    RepositoryDescriptor,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_IN_FLIGHT = 20


class MirrorCoordinator:
    """Run the executor for every repository of one organization.

    Args:
        executor: Per-repository state machine.
        request: Organization being synced (output root and token).
        hooks: Install guard hooks after each repository.
        dry_run: Only plan actions; nothing touches disk or network.
        hook_installer: Hook writer (injectable for tests).
    """

    def __init__(
        self,
        executor: SyncExecutor,
        request: OrgSyncRequest,
        hooks: bool = True,
        dry_run: bool = False,
        hook_installer: Callable[..., bool] = install_hooks,
    ) -> None:
        self.executor = executor
        self.request = request
        self.hooks = hooks
        self.dry_run = dry_run
        self.hook_installer = hook_installer

    def _sync_one(self, repo: RepositoryDescriptor) -> MirrorResult:
        """Blocking body of one unit; runs in a worker thread."""
        path = self.request.mirror_path(repo)
        if self.dry_run:
            return self.executor.plan(repo, path)

        result = self.executor.sync(repo, path, self.request.token)
        # Hooks run after success and failure alike; a failed clone leaves
        # no .git directory and is skipped by the installer.
        if self.hooks and result.action != MirrorAction.SKIP:
            self.hook_installer(path)
        return result

    async def _unit(
        self,
        repo: RepositoryDescriptor,
        slots: asyncio.Semaphore,
        pool: Executor,
    ) -> MirrorResult:
        try:
            return await run_sync_limited(slots, self._sync_one, repo, pool=pool)
        except Exception as exc:
            logger.exception("Unexpected error syncing %s", repo.name)
            return MirrorResult(
                name=repo.name,
                path=self.request.output_dir / repo.name,
                state=MirrorState.FAILED,
                action=MirrorAction.SKIP,
                error=f"unexpected error: {exc}",
            )

    async def run(
        self,
        repositories: list[RepositoryDescriptor],
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
    ) -> list[MirrorResult]:
        """Sync all *repositories* with at most *max_in_flight* at once.

        Returns:
            One terminal result per repository, in input order.
        """
        if not repositories:
            return []

        slots = create_slots(max_in_flight)
        logger.debug(
            "Syncing %d repositories of %s (max %d in flight)",
            len(repositories),
            self.request.organization,
            max_in_flight,
        )
        pool = create_worker_pool(max_in_flight)
        try:
            return await gather_all(
                [self._unit(repo, slots, pool) for repo in repositories]
            )
        finally:
            pool.shutdown(wait=True)
