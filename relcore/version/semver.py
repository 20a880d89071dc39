from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, get_args

from relcore.core.result import Err, Ok, Result
from relcore.release.errors import (
    InvalidBumpKind,
    InvalidVersionFormat,
    ReleaseError,
    VersionComputationFailed,
)

BumpKind = Literal["patch", "minor", "major", "beta"]
BUMP_KINDS: tuple[str, ...] = get_args(BumpKind)

BETA_ID = "beta"

# Semantic Versioning 2.0.0, without the leading "v" used by tags.
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += "-" + ".".join(self.prerelease)
        if self.build:
            out += "+" + ".".join(self.build)
        return out

    @property
    def core(self) -> SemVer:
        return SemVer(self.major, self.minor, self.patch)

    @property
    def beta_number(self) -> int | None:
        """N for ``-beta.N``, 0 for a bare ``-beta``, None otherwise."""
        if not self.prerelease or self.prerelease[0] != BETA_ID:
            return None
        if len(self.prerelease) == 1:
            return 0
        if len(self.prerelease) == 2 and self.prerelease[1].isdigit():
            return int(self.prerelease[1])
        return None

    def bump(self, kind: BumpKind) -> SemVer:
        # A prerelease of X.Y.Z already sits "below" X.Y.Z, so bumping to the
        # level that is already zeroed only drops the prerelease.
        pre = bool(self.prerelease)
        match kind:
            case "major":
                if pre and self.minor == 0 and self.patch == 0:
                    return self.core
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                if pre and self.patch == 0:
                    return self.core
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                if pre:
                    return self.core
                return SemVer(self.major, self.minor, self.patch + 1)
            case "beta":
                n = self.beta_number
                if n is None:
                    return self.bump("patch").with_beta(1)
                if len(self.prerelease) == 1:
                    return self.core.with_beta(0)
                return self.core.with_beta(n + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")

    def with_beta(self, n: int) -> SemVer:
        return SemVer(self.major, self.minor, self.patch, (BETA_ID, str(n)))


def parse_version(value: str) -> SemVer | None:
    m = _SEMVER_RE.match(value)
    if m is None:
        return None
    pre = tuple(m.group(4).split(".")) if m.group(4) else ()
    build = tuple(m.group(5).split(".")) if m.group(5) else ()
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), pre, build)


def parse_custom(value: str) -> Result[str, ReleaseError]:
    """Validate a user-supplied version; it is used verbatim."""
    stripped = value.strip()
    if parse_version(stripped) is None:
        return Err(
            InvalidVersionFormat(
                value=value,
                reason="expected MAJOR.MINOR.PATCH[-prerelease][+build]",
            )
        )
    return Ok(stripped)


def is_bump_kind(kind: str) -> bool:
    return kind in BUMP_KINDS


def bump(current: str, kind: str) -> Result[str, ReleaseError]:
    """Compute the version that follows ``current`` for a bump ``kind``."""
    if not is_bump_kind(kind):
        return Err(InvalidBumpKind(kind=kind, allowed=BUMP_KINDS))

    parsed = parse_version(current)
    if parsed is None:
        return Err(VersionComputationFailed(current=current, kind=kind))

    # is_bump_kind narrowed at runtime; the Literal is for readers.
    return Ok(str(parsed.bump(kind)))  # type: ignore[arg-type]
