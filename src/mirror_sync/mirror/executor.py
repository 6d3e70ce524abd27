"""Per-repository sync state machine.

``SyncExecutor.sync`` walks one repository through::

    start --(missing)--> cloning --> done | failed
    start --(exists)---> pulling --(up to date / fast-forward)--> done
                         pulling --(unstaged / non-fast-forward)--> diverged
                                   --> recovering --> done | failed
                         pulling --(other error)--> failed

It never raises for repository-level problems: every path ends in a
``MirrorResult`` whose state is ``DONE`` or ``FAILED``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from ..errors import GitTransportError
from ..validators import validate_repo_name
from .models import (
    MirrorAction,
    MirrorResult,
    MirrorState,
    PullStatus,
    RepositoryDescriptor,
)
from .probe import mirror_exists
from .recovery import RecoveryPolicy
from .transport import GitTransport

logger = logging.getLogger(__name__)


class SyncExecutor:
    """Clone or update a single mirror.

    Args:
        transport: Git transport for clone and pull.
        recovery: Policy applied when a pull reports divergence.
        probe: Existence check for the mirror path.
        remote: Remote name pulled from.
    """

    def __init__(
        self,
        transport: GitTransport,
        recovery: RecoveryPolicy | None = None,
        probe: Callable[[Path], bool] = mirror_exists,
        remote: str = "origin",
    ) -> None:
        self.transport = transport
        self.recovery = recovery or RecoveryPolicy(transport)
        self.probe = probe
        self.remote = remote

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def sync(
        self, repo: RepositoryDescriptor, path: Path, token: str
    ) -> MirrorResult:
        """Bring the mirror of *repo* at *path* up to date."""
        is_valid, reason = validate_repo_name(repo.name)
        if not is_valid:
            logger.error("Skipping repository %r: %s", repo.name, reason)
            return self._failed(repo, path, MirrorAction.SKIP, reason)

        if self.probe(path):
            return self._pull(repo, path, token)
        return self._clone(repo, path, token)

    def plan(self, repo: RepositoryDescriptor, path: Path) -> MirrorResult:
        """Report what ``sync`` would do, without doing it."""
        is_valid, reason = validate_repo_name(repo.name)
        if not is_valid:
            return self._failed(repo, path, MirrorAction.SKIP, reason)

        action = MirrorAction.PULL if self.probe(path) else MirrorAction.CLONE
        return MirrorResult(
            name=repo.name, path=path, state=MirrorState.START, action=action
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _clone(
        self, repo: RepositoryDescriptor, path: Path, token: str
    ) -> MirrorResult:
        logger.info("Cloning: %s", repo.name)
        self._transition(repo, MirrorState.START, MirrorState.CLONING)
        try:
            self.transport.clone(repo.clone_url, path, token)
        except GitTransportError as exc:
            logger.error(
                "Error cloning repository: %s | ERROR: %s", repo.name, exc
            )
            return self._failed(repo, path, MirrorAction.CLONE, str(exc))

        logger.info("Repository cloned successfully: %s", repo.name)
        return MirrorResult(
            name=repo.name,
            path=path,
            state=MirrorState.DONE,
            action=MirrorAction.CLONE,
        )

    def _pull(
        self, repo: RepositoryDescriptor, path: Path, token: str
    ) -> MirrorResult:
        logger.info("Pulling: %s", repo.name)
        self._transition(repo, MirrorState.START, MirrorState.PULLING)
        outcome = self.transport.pull(path, self.remote, token)

        if outcome.status == PullStatus.UP_TO_DATE:
            logger.info("Already up to date: %s", repo.name)
            return MirrorResult(
                name=repo.name,
                path=path,
                state=MirrorState.DONE,
                action=MirrorAction.UP_TO_DATE,
            )

        if outcome.status == PullStatus.OK:
            logger.info("Repository pulled successfully: %s", repo.name)
            return MirrorResult(
                name=repo.name,
                path=path,
                state=MirrorState.DONE,
                action=MirrorAction.PULL,
            )

        if outcome.status.is_divergence:
            logger.warning(
                "Diverged (%s): %s", outcome.status.value, repo.name
            )
            self._transition(repo, MirrorState.PULLING, MirrorState.DIVERGED)
            self._transition(repo, MirrorState.DIVERGED, MirrorState.RECOVERING)
            return self.recovery.recover(repo, path, token)

        logger.error(
            "Error pulling repository: %s | ERROR: %s", repo.name, outcome.detail
        )
        return self._failed(
            repo, path, MirrorAction.PULL, outcome.detail or "pull failed"
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _transition(
        repo: RepositoryDescriptor, src: MirrorState, dst: MirrorState
    ) -> None:
        logger.debug("%s: %s -> %s", repo.name, src.value, dst.value)

    @staticmethod
    def _failed(
        repo: RepositoryDescriptor,
        path: Path,
        action: MirrorAction,
        error: str,
    ) -> MirrorResult:
        return MirrorResult(
            name=repo.name,
            path=path,
            state=MirrorState.FAILED,
            action=action,
            error=error,
        )
