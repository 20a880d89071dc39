"""Collaborator contracts for the release pipeline.

The pipeline only talks to git, the builder and the operator through these
protocols; tests substitute in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from relcore.core.result import Result
from relcore.git.repository import GitError, GitStatus
from relcore.release.errors import BuildFailed, ReleaseError
from relcore.release.model import ReleasePlan


class VcsProtocol(Protocol):
    def exists(self) -> bool: ...

    def status(self) -> Result[GitStatus, GitError]: ...

    def current_branch(self) -> str | None: ...

    def tag_exists(self, name: str) -> bool: ...

    def add_all(self) -> Result[None, GitError]: ...

    def commit(self, message: str) -> Result[None, GitError]: ...

    def create_tag(self, name: str, *, message: str) -> Result[None, GitError]: ...

    def delete_tag(self, name: str) -> Result[None, GitError]: ...

    def reset_hard(self, ref: str) -> Result[None, GitError]: ...

    def push(self, remote: str, ref: str) -> Result[None, GitError]: ...


class Builder(Protocol):
    def describe(self) -> str:
        """Human-readable command line, for previews and errors."""
        ...

    def is_available(self) -> bool: ...

    def build(self) -> Result[Path, BuildFailed]:
        """Build the distributable and return the artifact path."""
        ...


Bumper = Callable[[str, str], Result[str, ReleaseError]]
Confirm = Callable[[ReleasePlan], bool]
