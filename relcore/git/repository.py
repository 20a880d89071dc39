"""Git repository abstraction.

The release pipeline's only view of version control. Each operation maps to
one git command and returns a Result, so the orchestrator can tell a failed
commit (rolled back) from a failed push (left in place).

Usage:
    repo = Repository(Path("/path/to/project"))

    match repo.create_tag("v1.2.4", message="Version 1.2.4"):
        case Ok(_):
            ...
        case Err(e):
            print(f"{e.command}: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from relcore.core.result import Err, Ok, Result
from relcore.platform.process import ProcessError
from relcore.platform.process import run as run_process

GIT_TIMEOUT_SECONDS = 30.0
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "tag -a")
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    def pretty_xy(self) -> str:
        """Format XY with dots for spaces (". M" instead of " M")."""
        return self.xy.replace(" ", ".")


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed ``git status --porcelain=v1 -b``."""

    branch: str
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0


class Repository:
    """Git working copy that a release is cut from.

    Attributes:
        path: Path to the working tree (any directory inside it works)
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check that ``path`` lies inside a git working copy."""
        return isinstance(self._run(["rev-parse", "--git-dir"]), Ok)

    def status(self) -> Result[GitStatus, GitError]:
        result = self._run(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def current_branch(self) -> str | None:
        """Current branch name, None on detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def tag_exists(self, name: str) -> bool:
        result = self._run(["rev-parse", "-q", "--verify", f"refs/tags/{name}"])
        return isinstance(result, Ok)

    def add_all(self) -> Result[None, GitError]:
        return self._simple(["add", "-A"], command="add -A")

    def commit(self, message: str) -> Result[None, GitError]:
        result = self._run(["commit", "-m", message])
        if isinstance(result, Err):
            e = result.error
            error = _git_error("commit", e, "git commit failed")
            if not (e.stderr.strip() or e.stdout.strip()):
                error = GitError(
                    command="commit",
                    message="git commit failed (is user.name/user.email configured?)",
                    returncode=e.returncode,
                )
            return Err(error)
        return Ok(None)

    def create_tag(self, name: str, *, message: str) -> Result[None, GitError]:
        """Create an annotated tag at HEAD."""
        return self._simple(["tag", "-a", name, "-m", message], command="tag -a")

    def delete_tag(self, name: str) -> Result[None, GitError]:
        return self._simple(["tag", "-d", name], command="tag -d")

    def reset_hard(self, ref: str) -> Result[None, GitError]:
        return self._simple(["reset", "--hard", ref], command="reset --hard")

    def push(self, remote: str, ref: str) -> Result[None, GitError]:
        """Push a single ref (branch or tag) to ``remote``."""
        return self._simple(["push", remote, ref], command="push")

    def _simple(self, args: list[str], *, command: str) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(command, result.error, f"git {command} failed"))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push"}
            else GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]
        if not lines:
            return GitStatus(branch="")

        # First line is branch info: ## branch...upstream [ahead N, behind M]
        branch_line = lines[0].strip()
        if branch_line.startswith("##"):
            branch_line = branch_line[2:].lstrip()
        branch = branch_line.split(" [", 1)[0].split("...", 1)[0].strip()

        entries: list[StatusEntry] = []
        for line in lines[1:]:
            if len(line) < 4:
                continue
            entries.append(StatusEntry(xy=line[:2], path=line[3:]))

        return GitStatus(branch=branch, entries=tuple(entries))


def _git_error(command: str, e: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or fallback,
        returncode=e.returncode,
    )
