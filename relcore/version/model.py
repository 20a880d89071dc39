from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class VersionLocation:
    """Where a version string was found.

    Attributes:
        path: Path relative to the project root, as written in the registry.
        line: 1-based line of the match.
        version: The extracted version.
    """

    path: str
    line: int
    version: str

    def pretty(self) -> str:
        return f"{self.path}:{self.line} -> {self.version}"
