"""Git operations used by the release pipeline.

Usage:
    from relcore.git import Repository

    repo = Repository(Path("/path/to/project"))
    status = repo.status()
"""

from relcore.git.repository import (
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
)

__all__ = [
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]
