from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Literal

from relcore.core.result import Err, Ok, Result
from relcore.release.errors import InvalidBumpKind, InvalidVersionFormat, ReleaseError
from relcore.version.semver import BUMP_KINDS, is_bump_kind, parse_custom

ReleaseKind = Literal["patch", "minor", "major", "beta", "custom"]

STEP_VERSION_BUMP = "version-bump"
STEP_BUILD = "build"
STEP_COMMIT_TAG = "git-commit-tag"
STEP_PUSH = "push"


class PipelineStage(Enum):
    IDLE = "idle"
    ENVIRONMENT_VALIDATED = "environment-validated"
    VERSIONS_PREPARED = "versions-prepared"
    CONFIRMED = "confirmed"
    VERSION_BUMPED = "version-bumped"
    BUILT = "built"
    COMMITTED = "committed"
    PUSHED = "pushed"
    DONE = "done"
    # terminal
    CANCELLED = "cancelled"
    ROLLED_BACK = "rolled-back"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ReleaseRequest:
    """What the operator asked for, before any version is computed."""

    kind: ReleaseKind
    custom_version: str | None = None
    dry_run: bool = False
    force: bool = False


def make_request(
    *,
    kind: str | None,
    custom_version: str | None,
    dry_run: bool,
    force: bool,
) -> Result[ReleaseRequest, ReleaseError]:
    """Normalize CLI input: exactly one of ``kind`` or ``custom_version``."""
    if custom_version is not None:
        if kind is not None:
            return Err(
                InvalidVersionFormat(
                    value=custom_version,
                    reason=f"cannot combine a bump kind ({kind}) with a custom version",
                )
            )
        valid = parse_custom(custom_version)
        if isinstance(valid, Err):
            return valid
        return Ok(ReleaseRequest("custom", valid.value, dry_run=dry_run, force=force))

    if kind is None or not is_bump_kind(kind):
        return Err(InvalidBumpKind(kind=kind or "", allowed=BUMP_KINDS))

    return Ok(ReleaseRequest(kind, None, dry_run=dry_run, force=force))  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class ReleasePlan:
    kind: ReleaseKind
    custom_version: str | None
    current_version: str
    new_version: str
    dry_run: bool
    force: bool

    @property
    def tag(self) -> str:
        return f"v{self.new_version}"

    def summary(self) -> list[tuple[str, str]]:
        return [
            ("Release type", self.kind),
            ("Current version", self.current_version),
            ("New version", self.new_version),
            ("Tag", self.tag),
            ("Dry run", "yes" if self.dry_run else "no"),
        ]


# An undo returns Err(description) when it could not fully compensate.
Undo = Callable[[], Result[None, str]]


@dataclass(frozen=True, slots=True)
class RollbackAction:
    step: str
    description: str
    undo: Undo


@dataclass(frozen=True, slots=True)
class PipelineState:
    """What a release run has done so far.

    Grows monotonically: each stage returns a new state with its step
    appended and, if the step mutated something, its compensating action.
    """

    completed: tuple[str, ...] = ()
    rollback: tuple[RollbackAction, ...] = ()
    artifact: Path | None = None

    def complete(self, step: str, *, undo: RollbackAction | None = None) -> PipelineState:
        actions = self.rollback if undo is None else (*self.rollback, undo)
        return replace(self, completed=(*self.completed, step), rollback=actions)

    def with_artifact(self, path: Path) -> PipelineState:
        return replace(self, artifact=path)


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    stage: PipelineStage
    plan: ReleasePlan | None
    state: PipelineState
    error: ReleaseError | None = None
    rolled_back: tuple[str, ...] = ()
    rollback_failures: tuple[str, ...] = ()
    manual_steps: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.stage in (PipelineStage.DONE, PipelineStage.CANCELLED)
