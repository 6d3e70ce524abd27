"""Recovery of diverged mirrors.

A mirror whose working tree is dirty or whose history cannot be
fast-forwarded is moved aside to a dated backup directory and replaced by
a fresh clone.  The backup is never read again by the engine.

Backup naming: ``<path>_YYYYMMDD``.  When that name is already taken
(a second recovery on the same day) the first free ``<path>_YYYYMMDD_N``
is used.  A failed rename is fatal for the repository: the clone is not
attempted, so nothing is ever cloned on top of stale data.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Callable

from ..errors import GitTransportError, RecoveryError
from .models import MirrorAction, MirrorResult, MirrorState, RepositoryDescriptor
from .transport import GitTransport

logger = logging.getLogger(__name__)


def backup_path_for(path: Path, today: date) -> Path:
    """Return the first unused backup path for *path* on *today*."""
    stem = f"{path.name}_{today:%Y%m%d}"
    candidate = path.with_name(stem)
    suffix = 1
    while candidate.exists():
        candidate = path.with_name(f"{stem}_{suffix}")
        suffix += 1
    return candidate


class RecoveryPolicy:
    """Move a diverged mirror aside and clone it again.

    Args:
        transport: Git transport used for the fresh clone.
        today: Callable returning the current date (injectable for tests).
    """

    def __init__(
        self,
        transport: GitTransport,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.transport = transport
        self.today = today

    def backup(self, path: Path) -> Path:
        """Rename *path* to its dated backup name.

        Raises:
            RecoveryError: If the rename fails.
        """
        target = backup_path_for(path, self.today())
        try:
            path.rename(target)
        except OSError as exc:
            raise RecoveryError(f"Error on backup: {path} -> {target}: {exc}") from exc
        logger.info("Backed up %s to %s", path, target)
        return target

    def recover(
        self, repo: RepositoryDescriptor, path: Path, token: str
    ) -> MirrorResult:
        """Back up the mirror at *path* and clone *repo* into it again.

        Returns:
            A ``DONE`` result when both steps succeed, otherwise ``FAILED``
            with the error of the step that failed.
        """
        try:
            backup = self.backup(path)
        except RecoveryError as exc:
            logger.error("%s | ERROR: %s", repo.name, exc)
            return MirrorResult(
                name=repo.name,
                path=path,
                state=MirrorState.FAILED,
                action=MirrorAction.RECOVER,
                error=str(exc),
            )

        try:
            self.transport.clone(repo.clone_url, path, token)
        except GitTransportError as exc:
            logger.error(
                "Error re-cloning repository: %s | ERROR: %s", repo.name, exc
            )
            return MirrorResult(
                name=repo.name,
                path=path,
                state=MirrorState.FAILED,
                action=MirrorAction.RECOVER,
                backup_path=backup,
                error=f"re-clone failed: {exc}",
            )

        logger.info("Repository recovered successfully: %s", repo.name)
        return MirrorResult(
            name=repo.name,
            path=path,
            state=MirrorState.DONE,
            action=MirrorAction.RECOVER,
            backup_path=backup,
        )
