"""Git transport: clone and fast-forward-only pull.

``GitPythonTransport`` drives the ``git`` binary through GitPython.  The
token is sent as HTTP basic auth (placeholder username, token as
password) through an ``http.extraHeader`` supplied in ``GIT_CONFIG_*``
environment variables, so it never lands in ``.git/config``, in remote
URLs, or on the command line.

A pull never merges.  Anything that would need a merge is reported as a
divergence status for the recovery policy to handle.
"""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from ..errors import GitTransportError
from .models import PullOutcome, PullStatus

logger = logging.getLogger(__name__)

# Username half of the basic-auth pair; servers only look at the token.
PLACEHOLDER_USERNAME = "dummy"

_UNSTAGED_MARKERS = (
    "would be overwritten by merge",
    "please commit your changes or stash them",
    "you have unstaged changes",
)
_NON_FAST_FORWARD_MARKERS = (
    "not possible to fast-forward",
    "diverging branches",
    "have diverged",
    "non-fast-forward",
)


class GitTransport(Protocol):
    """Protocol for the operations the executor needs from git."""

    def clone(self, url: str, dest: Path, token: str) -> None:
        """Clone *url* into *dest*.

        Raises:
            GitTransportError: If the clone fails.
        """
        ...  # pragma: no cover

    def pull(self, path: Path, remote: str, token: str) -> PullOutcome:
        """Fast-forward the mirror at *path* from *remote*."""
        ...  # pragma: no cover


def classify_pull_error(stderr: str) -> PullStatus:
    """Map git's pull error output to a ``PullStatus``."""
    text = stderr.lower()
    if any(marker in text for marker in _UNSTAGED_MARKERS):
        return PullStatus.UNSTAGED_CHANGES
    if any(marker in text for marker in _NON_FAST_FORWARD_MARKERS):
        return PullStatus.NON_FAST_FORWARD
    return PullStatus.ERROR


class GitPythonTransport:
    """Git transport backed by GitPython.

    Args:
        stall_timeout: Seconds a transfer may stay below 1 KB/s before git
            aborts it, which frees the admission slot of a hung operation.
        insecure: Disable TLS certificate verification.
    """

    def __init__(self, stall_timeout: int = 60, insecure: bool = False) -> None:
        self.stall_timeout = stall_timeout
        self.insecure = insecure

    def git_env(self, token: str) -> dict[str, str]:
        """Environment for one git invocation carrying *token*."""
        credential = base64.b64encode(
            f"{PLACEHOLDER_USERNAME}:{token}".encode()
        ).decode("ascii")
        settings = [("http.extraHeader", f"Authorization: Basic {credential}")]
        if self.insecure:
            settings.append(("http.sslVerify", "false"))

        env = {
            "GIT_TERMINAL_PROMPT": "0",
            "GIT_HTTP_LOW_SPEED_LIMIT": "1000",
            "GIT_HTTP_LOW_SPEED_TIME": str(self.stall_timeout),
            "GIT_CONFIG_COUNT": str(len(settings)),
        }
        for index, (key, value) in enumerate(settings):
            env[f"GIT_CONFIG_KEY_{index}"] = key
            env[f"GIT_CONFIG_VALUE_{index}"] = value
        return env

    def clone(self, url: str, dest: Path, token: str) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            Repo.clone_from(url, str(dest), env=self.git_env(token))
        except GitCommandError as exc:
            raise GitTransportError(_stderr(exc) or str(exc)) from exc

    def pull(self, path: Path, remote: str, token: str) -> PullOutcome:
        try:
            repo = Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as exc:
            return PullOutcome(
                status=PullStatus.ERROR,
                detail=f"not a git repository: {exc}",
            )

        try:
            if repo.is_dirty(untracked_files=False):
                return PullOutcome(
                    status=PullStatus.UNSTAGED_CHANGES,
                    detail="working tree has uncommitted changes",
                )
            output = repo.git.pull(remote, "--ff-only", env=self.git_env(token))
        except GitCommandError as exc:
            stderr = _stderr(exc)
            return PullOutcome(
                status=classify_pull_error(stderr), detail=stderr or str(exc)
            )
        finally:
            repo.close()

        logger.debug("git pull %s: %s", path, output)
        if "already up to date" in output.lower() or "already up-to-date" in output.lower():
            return PullOutcome(status=PullStatus.UP_TO_DATE)
        return PullOutcome(status=PullStatus.OK)


def _stderr(exc: GitCommandError) -> str:
    # GitPython stores stderr as "\n  stderr: '<text>'"
    text = str(exc.stderr or "").strip()
    if text.startswith("stderr: '") and text.endswith("'"):
        text = text[len("stderr: '"):-1]
    return text.strip()
