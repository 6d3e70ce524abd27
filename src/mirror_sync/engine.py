"""Run orchestration over all configured organizations.

For each organization, in configuration order:

1. List its repositories through the directory client.
2. Hand the list to a ``MirrorCoordinator`` and wait for every repository.
3. Record an ``OrgReport``.

A listing failure skips that organization and the run moves on to the
next one.  Repository failures never stop anything.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from .core.async_utils import run_sync
from .directory import DirectoryClient, create_directory_client
from .errors import ListingError
from .mirror.coordinator import DEFAULT_MAX_IN_FLIGHT, MirrorCoordinator
from .mirror.executor import SyncExecutor
from .mirror.models import OrgReport, OrgSyncRequest, RunReport
from .mirror.transport import GitPythonTransport

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MirrorEngine:
    """Sync every configured organization once.

    Args:
        directory: Client listing each organization's repositories.
        executor: Per-repository state machine.
        max_parallel: Admission slots per organization run.
        hooks: Install guard hooks after each repository.
        dry_run: List and plan only.
    """

    def __init__(
        self,
        directory: DirectoryClient,
        executor: SyncExecutor,
        max_parallel: int = DEFAULT_MAX_IN_FLIGHT,
        hooks: bool = True,
        dry_run: bool = False,
    ) -> None:
        self.directory = directory
        self.executor = executor
        self.max_parallel = max_parallel
        self.hooks = hooks
        self.dry_run = dry_run

    async def sync_org(self, request: OrgSyncRequest) -> OrgReport:
        """List and sync one organization."""
        started_at = _now()
        logger.info(
            "Syncing organization %s into %s",
            request.organization,
            request.output_dir,
        )

        try:
            repositories = await run_sync(
                self.directory.list,
                request.server_url,
                request.organization,
                request.token,
            )
        except ListingError as exc:
            logger.error("%s; skipping organization", exc)
            return OrgReport(
                organization=request.organization,
                output_dir=request.output_dir,
                dry_run=self.dry_run,
                error=str(exc),
                started_at=started_at,
                completed_at=_now(),
            )

        coordinator = MirrorCoordinator(
            self.executor,
            request,
            hooks=self.hooks,
            dry_run=self.dry_run,
        )
        results = await coordinator.run(repositories, self.max_parallel)

        report = OrgReport(
            organization=request.organization,
            output_dir=request.output_dir,
            dry_run=self.dry_run,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )
        logger.info("Finished %s", report.summary())
        return report

    async def run(self, requests: list[OrgSyncRequest]) -> RunReport:
        """Sync each organization in turn and collect the reports."""
        started_at = _now()
        reports = [await self.sync_org(request) for request in requests]
        return RunReport(
            organizations=reports,
            dry_run=self.dry_run,
            started_at=started_at,
            completed_at=_now(),
        )


def build_engine(config: Config, dry_run: bool = False) -> MirrorEngine:
    """Wire the default directory client and git transport for *config*."""
    directory = create_directory_client(
        config.listing,
        api_prefix=config.api_prefix,
        per_page=config.per_page,
        timeout=config.request_timeout,
        insecure=config.insecure,
    )
    transport = GitPythonTransport(
        stall_timeout=config.stall_timeout,
        insecure=config.insecure,
    )
    return MirrorEngine(
        directory=directory,
        executor=SyncExecutor(transport),
        max_parallel=config.max_parallel,
        hooks=config.hooks,
        dry_run=dry_run,
    )
