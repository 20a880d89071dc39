"""Tests for git/repository.py."""

from __future__ import annotations

from pathlib import Path

import pytest

import relcore.git.repository as repository_mod
from relcore.core.result import Err, Ok, Result
from relcore.git.repository import GitStatus, Repository, StatusEntry
from relcore.platform.process import ProcessError


class FakeGit:
    """Records git invocations and answers from a scripted table."""

    def __init__(self, responses: dict[tuple[str, ...], Result[str, ProcessError]] | None = None):
        self.calls: list[tuple[list[str], float | None]] = []
        self.responses = responses or {}

    def __call__(
        self, cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        self.calls.append((cmd, timeout))
        args = tuple(cmd[3:])
        for prefix, response in self.responses.items():
            if args[: len(prefix)] == prefix:
                return response
        return Ok("")

    @property
    def commands(self) -> list[list[str]]:
        return [cmd[3:] for cmd, _ in self.calls]


def _fail(stderr: str, code: int = 1) -> Err[ProcessError]:
    return Err(ProcessError(command=("git",), returncode=code, stdout="", stderr=stderr))


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch) -> FakeGit:
    fake = FakeGit()
    monkeypatch.setattr(repository_mod, "run_process", fake)
    return fake


# =============================================================================
# StatusEntry / GitStatus
# =============================================================================


class TestStatusEntry:
    def test_pretty_xy(self) -> None:
        assert StatusEntry(xy="M ", path="f").pretty_xy() == "M."
        assert StatusEntry(xy=" M", path="f").pretty_xy() == ".M"


class TestGitStatus:
    def test_clean(self) -> None:
        assert GitStatus(branch="main").is_clean

    def test_dirty(self) -> None:
        assert not GitStatus(branch="main", entries=(StatusEntry(" M", "a"),)).is_clean


# =============================================================================
# Repository
# =============================================================================


class TestRepository:
    def test_every_command_targets_the_repo_path(self, fake_git: FakeGit, tmp_path: Path) -> None:
        Repository(tmp_path).add_all()
        cmd, _ = fake_git.calls[0]
        assert cmd[:3] == ["git", "-C", str(tmp_path)]

    def test_exists(self, fake_git: FakeGit, tmp_path: Path) -> None:
        assert Repository(tmp_path).exists()
        fake_git.responses[("rev-parse", "--git-dir")] = _fail("fatal: not a git repository")
        assert not Repository(tmp_path).exists()

    def test_status_parses_branch_and_entries(self, fake_git: FakeGit, tmp_path: Path) -> None:
        fake_git.responses[("status",)] = Ok(
            "## main...origin/main [ahead 1]\nM  staged.py\n M pyproject.toml\n?? new.py\n"
        )
        result = Repository(tmp_path).status()

        assert isinstance(result, Ok)
        status = result.value
        assert status.branch == "main"
        assert [e.path for e in status.entries] == ["staged.py", "pyproject.toml", "new.py"]
        assert not status.is_clean

    def test_status_failure(self, fake_git: FakeGit, tmp_path: Path) -> None:
        fake_git.responses[("status",)] = _fail("fatal: bad object")
        result = Repository(tmp_path).status()
        assert isinstance(result, Err)
        assert result.error.message == "fatal: bad object"

    def test_current_branch(self, fake_git: FakeGit, tmp_path: Path) -> None:
        fake_git.responses[("rev-parse", "--abbrev-ref")] = Ok("main\n")
        assert Repository(tmp_path).current_branch() == "main"

    def test_current_branch_detached(self, fake_git: FakeGit, tmp_path: Path) -> None:
        fake_git.responses[("rev-parse", "--abbrev-ref")] = Ok("HEAD\n")
        assert Repository(tmp_path).current_branch() is None

    def test_tag_exists(self, fake_git: FakeGit, tmp_path: Path) -> None:
        repo = Repository(tmp_path)
        assert repo.tag_exists("v1.0.0")
        assert fake_git.commands[-1] == ["rev-parse", "-q", "--verify", "refs/tags/v1.0.0"]
        fake_git.responses[("rev-parse", "-q")] = _fail("", code=1)
        assert not repo.tag_exists("v1.0.0")

    def test_commit_tag_and_undo_commands(self, fake_git: FakeGit, tmp_path: Path) -> None:
        repo = Repository(tmp_path)
        repo.add_all()
        repo.commit("Release version 1.2.4")
        repo.create_tag("v1.2.4", message="Version 1.2.4")
        repo.delete_tag("v1.2.4")
        repo.reset_hard("HEAD~1")

        assert fake_git.commands == [
            ["add", "-A"],
            ["commit", "-m", "Release version 1.2.4"],
            ["tag", "-a", "v1.2.4", "-m", "Version 1.2.4"],
            ["tag", "-d", "v1.2.4"],
            ["reset", "--hard", "HEAD~1"],
        ]

    def test_commit_failure_without_output_hints_at_identity(
        self, fake_git: FakeGit, tmp_path: Path
    ) -> None:
        fake_git.responses[("commit",)] = _fail("")
        result = Repository(tmp_path).commit("msg")
        assert isinstance(result, Err)
        assert "user.name" in result.error.message

    def test_push_uses_network_timeout(self, fake_git: FakeGit, tmp_path: Path) -> None:
        repo = Repository(tmp_path)
        repo.push("origin", "main")
        repo.add_all()

        (push_cmd, push_timeout), (_, local_timeout) = fake_git.calls
        assert push_cmd[3:] == ["push", "origin", "main"]
        assert push_timeout == repository_mod.GIT_NETWORK_TIMEOUT_SECONDS
        assert local_timeout == repository_mod.GIT_TIMEOUT_SECONDS

    def test_push_failure(self, fake_git: FakeGit, tmp_path: Path) -> None:
        fake_git.responses[("push",)] = _fail("! [rejected] main -> main (fetch first)")
        result = Repository(tmp_path).push("origin", "main")
        assert isinstance(result, Err)
        assert result.error.command == "push"
        assert "rejected" in result.error.message
