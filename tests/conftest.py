"""Shared pytest fixtures for mirror-sync tests."""

import threading
import time
from pathlib import Path

import pytest

from mirror_sync.errors import GitTransportError
from mirror_sync.mirror.models import (
    OrgSyncRequest,
    PullOutcome,
    PullStatus,
    RepositoryDescriptor,
)


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live server",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live server"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


class FakeTransport:
    """In-memory git transport.

    ``clone`` creates ``dest/.git``; ``pull`` answers from a per-name
    status table (default: up to date).  Tracks calls and the peak number
    of operations running at once.
    """

    def __init__(
        self,
        pull_statuses: dict[str, PullStatus] | None = None,
        clone_failures: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.pull_statuses = pull_statuses or {}
        self.clone_failures = clone_failures or set()
        self.delay = delay
        self.clone_calls: list[tuple[str, Path, str]] = []
        self.pull_calls: list[tuple[Path, str, str]] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def _enter(self) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)

    def _exit(self) -> None:
        with self._lock:
            self.active -= 1

    def clone(self, url: str, dest: Path, token: str) -> None:
        self._enter()
        try:
            with self._lock:
                self.clone_calls.append((url, dest, token))
            if self.delay:
                time.sleep(self.delay)
            if dest.name in self.clone_failures:
                raise GitTransportError(f"fatal: repository '{url}' not found")
            (dest / ".git").mkdir(parents=True)
        finally:
            self._exit()

    def pull(self, path: Path, remote: str, token: str) -> PullOutcome:
        self._enter()
        try:
            with self._lock:
                self.pull_calls.append((path, remote, token))
            if self.delay:
                time.sleep(self.delay)
            status = self.pull_statuses.get(path.name, PullStatus.UP_TO_DATE)
            detail = "fatal: simulated failure" if status == PullStatus.ERROR else None
            return PullOutcome(status=status, detail=detail)
        finally:
            self._exit()


@pytest.fixture
def fake_transport():
    """Factory fixture for FakeTransport instances."""

    def _create(**kwargs) -> FakeTransport:
        return FakeTransport(**kwargs)

    return _create


@pytest.fixture
def make_repo():
    """Factory fixture for repository descriptors."""

    def _create(name: str) -> RepositoryDescriptor:
        return RepositoryDescriptor(
            name=name, clone_url=f"https://git.example.com/acme/{name}.git"
        )

    return _create


@pytest.fixture
def org_request(tmp_path):
    """OrgSyncRequest for org 'acme' writing into tmp_path/mirrors."""
    return OrgSyncRequest(
        server_url="https://git.example.com",
        token="t0ken",
        organization="acme",
        output_dir=tmp_path / "mirrors",
    )
