"""
Tests for the GitPython-backed transport.

Classification and environment tests are pure; the remaining tests drive
the real ``git`` binary against bare repositories created in tmp_path.
"""

import base64
import shutil

import pytest
from git import Actor, Repo

from mirror_sync.errors import GitTransportError
from mirror_sync.mirror.models import PullStatus
from mirror_sync.mirror.transport import (
    PLACEHOLDER_USERNAME,
    GitPythonTransport,
    classify_pull_error,
)

AUTHOR = Actor("Upstream Dev", "dev@example.com")

requires_git = pytest.mark.skipif(
    shutil.which("git") is None, reason="git binary not available"
)


# ---------------------------------------------------------------------------
# classify_pull_error
# ---------------------------------------------------------------------------


class TestClassifyPullError:
    @pytest.mark.parametrize(
        "stderr",
        [
            "error: Your local changes to the following files would be overwritten by merge:\n\tREADME.md",
            "Please commit your changes or stash them before you merge.",
            "error: cannot pull with rebase: You have unstaged changes.",
        ],
    )
    def test_unstaged(self, stderr):
        assert classify_pull_error(stderr) == PullStatus.UNSTAGED_CHANGES

    @pytest.mark.parametrize(
        "stderr",
        [
            "fatal: Not possible to fast-forward, aborting.",
            "hint: You have divergent branches and need to specify how to reconcile them.\nfatal: Need to specify how to reconcile diverging branches.",
            "Your branch and 'origin/main' have diverged",
        ],
    )
    def test_non_fast_forward(self, stderr):
        assert classify_pull_error(stderr) == PullStatus.NON_FAST_FORWARD

    @pytest.mark.parametrize(
        "stderr",
        [
            "fatal: unable to access 'https://x/': Could not resolve host: x",
            "fatal: Authentication failed",
            "",
        ],
    )
    def test_other_errors(self, stderr):
        assert classify_pull_error(stderr) == PullStatus.ERROR


# ---------------------------------------------------------------------------
# git_env
# ---------------------------------------------------------------------------


class TestGitEnv:
    def test_basic_auth_header(self):
        env = GitPythonTransport().git_env("s3cret")

        expected = base64.b64encode(f"{PLACEHOLDER_USERNAME}:s3cret".encode()).decode()
        assert env["GIT_CONFIG_COUNT"] == "1"
        assert env["GIT_CONFIG_KEY_0"] == "http.extraHeader"
        assert env["GIT_CONFIG_VALUE_0"] == f"Authorization: Basic {expected}"

    def test_never_prompts(self):
        env = GitPythonTransport().git_env("tok")
        assert env["GIT_TERMINAL_PROMPT"] == "0"

    def test_stall_deadline(self):
        env = GitPythonTransport(stall_timeout=15).git_env("tok")
        assert env["GIT_HTTP_LOW_SPEED_LIMIT"] == "1000"
        assert env["GIT_HTTP_LOW_SPEED_TIME"] == "15"

    def test_insecure_disables_ssl_verify(self):
        env = GitPythonTransport(insecure=True).git_env("tok")
        assert env["GIT_CONFIG_COUNT"] == "2"
        assert env["GIT_CONFIG_KEY_1"] == "http.sslVerify"
        assert env["GIT_CONFIG_VALUE_1"] == "false"

    def test_token_not_in_plain_text(self):
        env = GitPythonTransport().git_env("s3cret")
        assert not any("s3cret" in value for value in env.values())


# ---------------------------------------------------------------------------
# Real git against local bare repositories
# ---------------------------------------------------------------------------


def _commit(repo: Repo, filename: str, content: str, message: str) -> None:
    path = repo.working_tree_dir + "/" + filename
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    repo.index.add([filename])
    repo.index.commit(message, author=AUTHOR, committer=AUTHOR)


@pytest.fixture
def upstream(tmp_path):
    """A bare 'server' repository plus a working clone used to push to it.

    Returns (bare_path, work_repo, branch).
    """
    bare_path = tmp_path / "server" / "api.git"
    Repo.init(bare_path, bare=True)

    work = Repo.init(tmp_path / "work")
    _commit(work, "README.md", "hello\n", "initial")
    branch = work.active_branch.name
    origin = work.create_remote("origin", str(bare_path))
    origin.push(refspec=f"{branch}:{branch}")
    yield bare_path, work, branch
    work.close()


def _push(work: Repo, branch: str) -> None:
    work.remote("origin").push(refspec=f"{branch}:{branch}")


@requires_git
class TestCloneAndPull:
    def test_clone(self, tmp_path, upstream):
        bare_path, _, _ = upstream
        dest = tmp_path / "mirrors" / "acme" / "api"

        GitPythonTransport().clone(str(bare_path), dest, "tok")

        assert (dest / ".git").is_dir()
        assert (dest / "README.md").read_text() == "hello\n"

    def test_token_not_written_to_config(self, tmp_path, upstream):
        bare_path, _, _ = upstream
        dest = tmp_path / "api"

        GitPythonTransport().clone(str(bare_path), dest, "s3cret-token")

        config_text = (dest / ".git" / "config").read_text()
        assert "s3cret" not in config_text
        assert "extraHeader" not in config_text

    def test_clone_failure(self, tmp_path):
        with pytest.raises(GitTransportError):
            GitPythonTransport().clone(
                str(tmp_path / "does-not-exist.git"), tmp_path / "api", "tok"
            )

    def test_pull_up_to_date(self, tmp_path, upstream):
        bare_path, _, _ = upstream
        dest = tmp_path / "api"
        transport = GitPythonTransport()
        transport.clone(str(bare_path), dest, "tok")

        outcome = transport.pull(dest, "origin", "tok")

        assert outcome.status == PullStatus.UP_TO_DATE

    def test_pull_fast_forward(self, tmp_path, upstream):
        bare_path, work, branch = upstream
        dest = tmp_path / "api"
        transport = GitPythonTransport()
        transport.clone(str(bare_path), dest, "tok")
        _commit(work, "CHANGELOG.md", "v2\n", "second")
        _push(work, branch)

        outcome = transport.pull(dest, "origin", "tok")

        assert outcome.status == PullStatus.OK
        assert (dest / "CHANGELOG.md").read_text() == "v2\n"

    def test_pull_dirty_tree(self, tmp_path, upstream):
        bare_path, _, _ = upstream
        dest = tmp_path / "api"
        transport = GitPythonTransport()
        transport.clone(str(bare_path), dest, "tok")
        (dest / "README.md").write_text("local edit\n")

        outcome = transport.pull(dest, "origin", "tok")

        assert outcome.status == PullStatus.UNSTAGED_CHANGES
        # Nothing was merged or discarded
        assert (dest / "README.md").read_text() == "local edit\n"

    def test_untracked_files_are_not_divergence(self, tmp_path, upstream):
        bare_path, _, _ = upstream
        dest = tmp_path / "api"
        transport = GitPythonTransport()
        transport.clone(str(bare_path), dest, "tok")
        (dest / "notes.txt").write_text("scratch\n")

        outcome = transport.pull(dest, "origin", "tok")

        assert outcome.status == PullStatus.UP_TO_DATE

    def test_pull_non_fast_forward(self, tmp_path, upstream):
        bare_path, work, branch = upstream
        dest = tmp_path / "api"
        transport = GitPythonTransport()
        transport.clone(str(bare_path), dest, "tok")

        mirror = Repo(dest)
        _commit(mirror, "local.txt", "local\n", "local commit")
        mirror.close()
        _commit(work, "remote.txt", "remote\n", "remote commit")
        _push(work, branch)

        outcome = transport.pull(dest, "origin", "tok")

        assert outcome.status == PullStatus.NON_FAST_FORWARD
        assert outcome.detail

    def test_pull_not_a_repository(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()

        outcome = GitPythonTransport().pull(plain, "origin", "tok")

        assert outcome.status == PullStatus.ERROR
        assert "not a git repository" in outcome.detail
