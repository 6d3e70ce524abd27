"""Pydantic models for the mirror engine.

Defines the data contracts shared across the mirror modules:

- ``RepositoryDescriptor``: One repository from a directory listing.
- ``OrgSyncRequest``: One configured organization to mirror.
- ``MirrorState``: States of the per-repository state machine.
- ``MirrorAction``: What was (or would be) done to a mirror.
- ``PullStatus`` / ``PullOutcome``: Result of a pull on an existing mirror.
- ``MirrorResult``: Terminal outcome for one repository.
- ``OrgReport`` / ``RunReport``: Aggregate results.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel


class RepositoryDescriptor(BaseModel):
    """A repository as returned by the directory listing.

    Attributes:
        name: Repository name, unique within one organization listing.
        clone_url: HTTPS URL used for cloning.
    """

    name: str
    clone_url: str

    model_config = {"frozen": True}


class OrgSyncRequest(BaseModel):
    """Everything needed to mirror one organization.

    Attributes:
        server_url: Base URL of the remote server.
        token: Personal access token used for listing and git.
        organization: Organization name.
        output_dir: Directory holding this organization's mirrors.
    """

    server_url: str
    token: str
    organization: str
    output_dir: Path

    model_config = {"frozen": True}

    def mirror_path(self, repo: RepositoryDescriptor) -> Path:
        """Local mirror path for *repo*."""
        return self.output_dir / repo.name


class MirrorState(str, Enum):
    """States of the per-repository sync state machine."""

    START = "start"
    CLONING = "cloning"
    PULLING = "pulling"
    DIVERGED = "diverged"
    RECOVERING = "recovering"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (MirrorState.DONE, MirrorState.FAILED)


class MirrorAction(str, Enum):
    """Operation performed on a mirror."""

    CLONE = "clone"
    PULL = "pull"
    UP_TO_DATE = "up_to_date"
    RECOVER = "recover"
    SKIP = "skip"


class PullStatus(str, Enum):
    """Outcome categories of a pull on an existing mirror."""

    UP_TO_DATE = "up_to_date"
    UNSTAGED_CHANGES = "unstaged_changes"
    NON_FAST_FORWARD = "non_fast_forward"
    OK = "ok"
    ERROR = "error"

    @property
    def is_divergence(self) -> bool:
        """True when the mirror can only be fixed by recovery."""
        return self in (PullStatus.UNSTAGED_CHANGES, PullStatus.NON_FAST_FORWARD)


class PullOutcome(BaseModel):
    """Result of one pull.

    Attributes:
        status: Outcome category.
        detail: Transport message (stderr) for errors and divergence.
    """

    status: PullStatus
    detail: str | None = None

    model_config = {"frozen": True}


class MirrorResult(BaseModel):
    """Terminal outcome for one repository.

    Attributes:
        name: Repository name.
        path: Local mirror path.
        state: ``DONE`` or ``FAILED``; ``START`` for a dry-run plan.
        action: Last operation attempted.
        backup_path: Where a diverged mirror was moved, if recovery ran.
        error: Error message when ``state`` is ``FAILED``.
    """

    name: str
    path: Path
    state: MirrorState
    action: MirrorAction
    backup_path: Path | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.state != MirrorState.FAILED


class OrgReport(BaseModel):
    """Results for one organization.

    Attributes:
        organization: Organization name.
        output_dir: Directory holding the mirrors.
        dry_run: Whether actions were only planned.
        results: One result per listed repository, in listing order.
        error: Listing error when the organization was skipped.
        started_at: ISO 8601 timestamp when the organization started.
        completed_at: ISO 8601 timestamp when it completed.
    """

    organization: str
    output_dir: Path
    dry_run: bool = False
    results: list[MirrorResult] = []
    error: str | None = None
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def by_action(self, action: MirrorAction) -> list[MirrorResult]:
        """Completed results with the given action."""
        return [
            r for r in self.results if r.state == MirrorState.DONE and r.action == action
        ]

    def planned(self, action: MirrorAction) -> list[MirrorResult]:
        """Dry-run results that would take the given action."""
        return [
            r for r in self.results if r.state == MirrorState.START and r.action == action
        ]

    @property
    def cloned(self) -> list[MirrorResult]:
        return self.by_action(MirrorAction.CLONE)

    @property
    def pulled(self) -> list[MirrorResult]:
        return self.by_action(MirrorAction.PULL)

    @property
    def up_to_date(self) -> list[MirrorResult]:
        return self.by_action(MirrorAction.UP_TO_DATE)

    @property
    def recovered(self) -> list[MirrorResult]:
        return self.by_action(MirrorAction.RECOVER)

    @property
    def failed(self) -> list[MirrorResult]:
        return [r for r in self.results if not r.ok]

    def summary(self) -> str:
        """One-line count summary."""
        if self.error:
            return f"{self.organization}: skipped ({self.error})"
        if self.dry_run:
            return (
                f"{self.organization}: {len(self.results)} repositories, "
                f"{len(self.planned(MirrorAction.CLONE))} would clone, "
                f"{len(self.planned(MirrorAction.PULL))} would pull, "
                f"{len(self.failed)} invalid"
            )
        return (
            f"{self.organization}: {len(self.results)} repositories, "
            f"{len(self.cloned)} cloned, {len(self.pulled)} pulled, "
            f"{len(self.up_to_date)} up to date, "
            f"{len(self.recovered)} recovered, {len(self.failed)} failed"
        )


class RunReport(BaseModel):
    """Aggregate report for a full run over all configured organizations."""

    organizations: list[OrgReport] = []
    dry_run: bool = False
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def results(self) -> list[MirrorResult]:
        return [r for org in self.organizations for r in org.results]

    @property
    def failed(self) -> list[MirrorResult]:
        return [r for r in self.results if not r.ok]

    @property
    def skipped_organizations(self) -> list[OrgReport]:
        return [org for org in self.organizations if org.error]
