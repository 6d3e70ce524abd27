"""Repository mirror engine.

Public API for cloning and updating the local mirrors of one
organization's repositories.

Modules:

- ``models``      -- ``RepositoryDescriptor``, ``OrgSyncRequest``,
  ``MirrorState``, ``MirrorResult``, ``OrgReport``, ``RunReport``.
- ``probe``       -- ``mirror_exists``: does a local mirror exist.
- ``transport``   -- ``GitPythonTransport``: clone and ff-only pull.
- ``recovery``    -- ``RecoveryPolicy``: back up a diverged mirror and
  clone it again.
- ``executor``    -- ``SyncExecutor``: per-repository state machine.
- ``coordinator`` -- ``MirrorCoordinator``: bounded concurrent fan-out.
- ``hooks``       -- ``install_hooks``: read-only guard hooks.
- ``reporter``    -- Human-readable and JSON report formatting.

Usage example
-------------
::

    import asyncio
    from pathlib import Path
    from mirror_sync.mirror import (
        GitPythonTransport, MirrorCoordinator, OrgSyncRequest, SyncExecutor,
    )

    request = OrgSyncRequest(
        server_url="https://github.example.com",
        token="ghp_...",
        organization="acme",
        output_dir=Path("mirrors"),
    )
    executor = SyncExecutor(GitPythonTransport())
    coordinator = MirrorCoordinator(executor, request)
    results = asyncio.run(coordinator.run(repositories, max_in_flight=20))
"""

from .coordinator import MirrorCoordinator
from .executor import SyncExecutor
from .hooks import install_hooks
from .models import (
    MirrorAction,
    MirrorResult,
    MirrorState,
    OrgReport,
    OrgSyncRequest,
    PullOutcome,
    PullStatus,
    RepositoryDescriptor,
    RunReport,
)
from .probe import mirror_exists
from .recovery import RecoveryPolicy
from .reporter import format_org_report, format_run_report, report_to_json
from .transport import GitPythonTransport, GitTransport

__all__ = [
    "GitPythonTransport",
    "GitTransport",
    "MirrorAction",
    "MirrorCoordinator",
    "MirrorResult",
    "MirrorState",
    "OrgReport",
    "OrgSyncRequest",
    "PullOutcome",
    "PullStatus",
    "RecoveryPolicy",
    "RepositoryDescriptor",
    "RunReport",
    "SyncExecutor",
    "format_org_report",
    "format_run_report",
    "install_hooks",
    "mirror_exists",
    "report_to_json",
]
