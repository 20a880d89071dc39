"""Cross-file version consistency check."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relcore.core.result import Err, Ok, Result
from relcore.output.console import ConsoleProtocol
from relcore.release.errors import NoVersionFound, ReleaseError, VersionInconsistent
from relcore.version.model import VersionLocation
from relcore.version.registry import VersionRegistry


@dataclass(frozen=True, slots=True)
class UnmatchedRule:
    path: str
    label: str


@dataclass(frozen=True, slots=True)
class VersionScan:
    found: tuple[VersionLocation, ...]
    missing: tuple[str, ...]
    unmatched: tuple[UnmatchedRule, ...]
    unreadable: tuple[tuple[str, str], ...] = ()

    @property
    def versions(self) -> frozenset[str]:
        return frozenset(loc.version for loc in self.found)


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def scan(root: Path, registry: VersionRegistry) -> VersionScan:
    """Extract every version the registry can see, without printing."""
    found: list[VersionLocation] = []
    missing: list[str] = []
    unmatched: list[UnmatchedRule] = []
    unreadable: list[tuple[str, str]] = []

    for entry in registry:
        path = root / entry.path
        if not path.is_file():
            missing.append(entry.path)
            continue

        try:
            text = path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            unreadable.append((entry.path, str(e)))
            continue

        for rule in entry.patterns:
            m = rule.extract(text)
            if m is None:
                unmatched.append(UnmatchedRule(path=entry.path, label=rule.label))
                continue
            found.append(
                VersionLocation(
                    path=entry.path,
                    line=_line_of(text, m.start("version")),
                    version=m.group("version"),
                )
            )

    return VersionScan(
        found=tuple(found),
        missing=tuple(missing),
        unmatched=tuple(unmatched),
        unreadable=tuple(unreadable),
    )


def validate(
    *,
    root: Path,
    registry: VersionRegistry,
    console: ConsoleProtocol,
) -> Result[str, ReleaseError]:
    """Return the single version shared by every registered file.

    Missing files and rules that do not match are warnings only: a file may
    simply not carry a particular marker.
    """
    result = scan(root, registry)

    if result.missing:
        console.warning(f"files not found: {', '.join(result.missing)}")
    for rule in result.unmatched:
        console.warning(f"no version marker ({rule.label}) in {rule.path}")
    for path, reason in result.unreadable:
        console.warning(f"cannot read {path}: {reason}")

    if not result.found:
        return Err(NoVersionFound(searched=tuple(entry.path for entry in registry)))

    if len(result.versions) > 1:
        return Err(VersionInconsistent(locations=result.found))

    version = result.found[0].version
    console.success(f"all files agree on version {version}")
    return Ok(version)
