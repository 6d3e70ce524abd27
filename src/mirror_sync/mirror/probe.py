"""Local mirror probe."""

from pathlib import Path


def mirror_exists(path: Path) -> bool:
    """Return True if anything exists at *path*.

    Only existence is checked.  A directory that is not a valid git
    repository still counts, so the executor will try to pull it and
    report the failure.
    """
    return path.exists()
