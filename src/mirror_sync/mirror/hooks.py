"""Post-sync hook installation.

Every mirror gets a ``pre-commit`` and a ``pre-push`` hook that refuse to
run, since local commits are never pushed back and would be discarded by
the next recovery anyway.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

HOOK_MODE = 0o755

PRE_COMMIT_SCRIPT = """\
#!/bin/sh
# Installed by mirror-sync.
echo "This repository is a read-only mirror managed by mirror-sync." >&2
echo "Commits are disabled; local changes are discarded on the next sync." >&2
exit 1
"""

PRE_PUSH_SCRIPT = """\
#!/bin/sh
# Installed by mirror-sync.
echo "This repository is a read-only mirror managed by mirror-sync." >&2
echo "Pushing from a mirror is disabled." >&2
exit 1
"""

HOOK_SCRIPTS = {
    "pre-commit": PRE_COMMIT_SCRIPT,
    "pre-push": PRE_PUSH_SCRIPT,
}


def install_hooks(repo_path: Path) -> bool:
    """Write the guard hooks into ``<repo_path>/.git/hooks``.

    Mirrors without a ``.git`` directory (for example after a failed
    clone) are left alone, so no directory is created that a later run
    would mistake for an existing mirror.

    Failures are logged and never raised: hook installation must not
    change the outcome of a sync.

    Returns:
        True if both hooks were written.
    """
    git_dir = repo_path / ".git"
    if not git_dir.is_dir():
        logger.debug("No .git directory in %s, skipping hooks", repo_path)
        return False

    hooks_dir = git_dir / "hooks"
    try:
        hooks_dir.mkdir(parents=True, exist_ok=True)
        for name, script in HOOK_SCRIPTS.items():
            hook_path = hooks_dir / name
            hook_path.write_text(script, encoding="utf-8")
            hook_path.chmod(HOOK_MODE)
    except OSError as exc:
        logger.error("Error creating hooks in %s: %s", repo_path, exc)
        return False

    return True
