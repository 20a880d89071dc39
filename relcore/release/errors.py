"""Error types for the release pipeline.

Each failure mode is its own frozen dataclass; ``ReleaseError`` is their
union. Stages return ``Err(<variant>)`` and the CLI renders and maps them to
exit codes in ``relcore.output.errors``. Every variant exposes ``message``
and ``hint`` so generic helpers can print any of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relcore.version.model import VersionLocation

__all__ = [
    "BuildFailed",
    "EnvironmentInvalid",
    "InvalidBumpKind",
    "InvalidVersionFormat",
    "NoFilesUpdated",
    "NoVersionFound",
    "PushFailed",
    "ReleaseError",
    "RewriteFailed",
    "VcsOperationFailed",
    "VersionComputationFailed",
    "VersionInconsistent",
]


@dataclass(frozen=True, slots=True)
class EnvironmentInvalid:
    reason: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True, slots=True)
class VersionInconsistent:
    locations: tuple[VersionLocation, ...]
    hint: str | None = "Align the files listed above, then retry."

    @property
    def versions(self) -> tuple[str, ...]:
        return tuple(sorted({loc.version for loc in self.locations}))

    @property
    def message(self) -> str:
        return f"version mismatch across files: {', '.join(self.versions)}"


@dataclass(frozen=True, slots=True)
class NoVersionFound:
    searched: tuple[str, ...]
    hint: str | None = "Check the [[version.files]] entries in release.toml."

    @property
    def message(self) -> str:
        return "no version found in any registered file"


@dataclass(frozen=True, slots=True)
class InvalidVersionFormat:
    value: str
    reason: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"invalid version '{self.value}': {self.reason}"


@dataclass(frozen=True, slots=True)
class InvalidBumpKind:
    kind: str
    allowed: tuple[str, ...]
    hint: str | None = "Use --version X.Y.Z for a custom version."

    @property
    def message(self) -> str:
        return f"unknown bump kind '{self.kind}' (expected one of: {', '.join(self.allowed)})"


@dataclass(frozen=True, slots=True)
class VersionComputationFailed:
    current: str
    kind: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"cannot compute {self.kind} bump from '{self.current}'"


@dataclass(frozen=True, slots=True)
class RewriteFailed:
    path: Path
    reason: str
    restored: bool
    hint: str | None = None

    @property
    def message(self) -> str:
        state = "files restored" if self.restored else "restore incomplete"
        return f"failed to rewrite {self.path}: {self.reason} ({state})"


@dataclass(frozen=True, slots=True)
class NoFilesUpdated:
    version: str
    hint: str | None = "The registry may be stale; compare it with the project layout."

    @property
    def message(self) -> str:
        return f"no registered file was updated to {self.version}"


@dataclass(frozen=True, slots=True)
class BuildFailed:
    reason: str
    returncode: int | None = None
    hint: str | None = None

    @property
    def message(self) -> str:
        if self.returncode is not None:
            return f"build failed (exit {self.returncode}): {self.reason}"
        return f"build failed: {self.reason}"


@dataclass(frozen=True, slots=True)
class VcsOperationFailed:
    operation: str
    detail: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"git {self.operation} failed: {self.detail}"


@dataclass(frozen=True, slots=True)
class PushFailed:
    target: str
    detail: str
    # Refs that did reach the remote before the failure.
    pushed: tuple[str, ...] = ()
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"push of {self.target} failed: {self.detail}"


ReleaseError = (
    EnvironmentInvalid
    | VersionInconsistent
    | NoVersionFound
    | InvalidVersionFormat
    | InvalidBumpKind
    | VersionComputationFailed
    | RewriteFailed
    | NoFilesUpdated
    | BuildFailed
    | VcsOperationFailed
    | PushFailed
)
