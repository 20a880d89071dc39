"""Atomic multi-file version update.

Protocol:
1. snapshot every registered file (``BackupSet``)
2. apply each file's rules and write changed files atomically
3. on any I/O failure, restore every file from the snapshot
4. fail if nothing changed: the registry no longer matches the project
5. best-effort pass over source directories for ``@version`` header tags

On success the snapshot, extended with the originals of header-pass files,
is handed back as the restore point for the caller's own rollback.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from relcore.core.config import HeaderScanConfig
from relcore.core.result import Err, Ok, Result
from relcore.output.console import ConsoleProtocol, Style
from relcore.platform.files import atomic_write_bytes
from relcore.release.errors import NoFilesUpdated, ReleaseError, RewriteFailed
from relcore.version.backup import BackupSet, guard
from relcore.version.registry import FileVersionRule, MarkerShape, PatternRule, VersionRegistry

_HEADER_RULE = PatternRule.for_marker(MarkerShape.HEADER)


@dataclass(frozen=True, slots=True)
class VersionUpdate:
    version: str
    files: tuple[str, ...]
    header_files: tuple[Path, ...]
    restore_point: BackupSet


@dataclass(frozen=True, slots=True)
class _FileFailure:
    path: Path
    reason: str


def _rewrite_file(path: Path, entry: FileVersionRule, version: str) -> bool:
    """Apply every rule of ``entry``. Returns True if the file changed.

    Raises:
        OSError, UnicodeDecodeError: on unreadable or unwritable files.
    """
    original = path.read_bytes().decode("utf-8")
    text = original
    for rule in entry.patterns:
        text = rule.rewrite(text, version)
    if text == original:
        return False
    atomic_write_bytes(path, text.encode("utf-8"))
    return True


def _rewrite_registry(
    *,
    root: Path,
    registry: VersionRegistry,
    version: str,
    backup: BackupSet,
    console: ConsoleProtocol,
) -> Result[list[str], _FileFailure]:
    updated: list[str] = []
    for entry in registry:
        path = root / entry.path
        if path not in backup:
            console.warning(f"file not found: {entry.path}")
            continue
        try:
            changed = _rewrite_file(path, entry, version)
        except (OSError, UnicodeDecodeError) as e:
            return Err(_FileFailure(path=path, reason=str(e)))
        if changed:
            console.success(f"updated {entry.path}")
            updated.append(entry.path)
        else:
            console.warning(f"no version marker updated in {entry.path}")
    return Ok(updated)


def apply_version(
    *,
    root: Path,
    registry: VersionRegistry,
    version: str,
    headers: HeaderScanConfig | None,
    console: ConsoleProtocol,
) -> Result[VersionUpdate, ReleaseError]:
    """Rewrite every registered file to ``version``, all or nothing.

    ``headers=None`` skips the header-tag pass.
    """
    console.info(f"updating version files to {version}")

    try:
        backup = BackupSet.capture(root / entry.path for entry in registry)
    except OSError as e:
        return Err(RewriteFailed(path=root, reason=f"snapshot failed: {e}", restored=True))

    with guard(backup, console):
        result = _rewrite_registry(
            root=root,
            registry=registry,
            version=version,
            backup=backup,
            console=console,
        )

    if isinstance(result, Err):
        failure = result.error
        console.warning("restoring version files from backup")
        restored = backup.restore_and_report(console)
        return Err(RewriteFailed(path=failure.path, reason=failure.reason, restored=restored))

    updated = result.value
    if not updated:
        backup.restore_and_report(console)
        return Err(NoFilesUpdated(version=version))

    header_files: tuple[Path, ...] = ()
    if headers is not None:
        header_files = update_headers(
            root=root,
            headers=headers,
            version=version,
            skip=frozenset(backup.paths),
            restore_point=backup,
            console=console,
        )

    console.success(f"updated {len(updated)} registered file(s), {len(header_files)} header(s)")
    return Ok(
        VersionUpdate(
            version=version,
            files=tuple(updated),
            header_files=header_files,
            restore_point=backup,
        )
    )


def iter_header_candidates(root: Path, headers: HeaderScanConfig) -> Iterator[Path]:
    """Files eligible for the header pass, in a stable order."""
    seen: set[Path] = set()
    excluded = set(headers.exclude)

    for directory in headers.directories:
        base = root / directory
        if not base.is_dir():
            continue
        for path in sorted(base.rglob("*")):
            if not path.is_file() or path.suffix not in headers.extensions:
                continue
            rel_parts = path.relative_to(root).parts
            if any(part in excluded for part in rel_parts[:-1]):
                continue
            if path not in seen:
                seen.add(path)
                yield path

    for name in headers.files:
        path = root / name
        if path.is_file() and path not in seen:
            seen.add(path)
            yield path


def update_headers(
    *,
    root: Path,
    headers: HeaderScanConfig,
    version: str,
    skip: frozenset[Path],
    restore_point: BackupSet,
    console: ConsoleProtocol,
) -> tuple[Path, ...]:
    """Rewrite ``@version`` header tags outside the registry.

    Best effort: a file that cannot be read or written is reported and
    skipped. Each changed file's original bytes are added to
    ``restore_point`` before it is written.
    """
    updated: list[Path] = []
    for path in iter_header_candidates(root, headers):
        if path in skip:
            continue
        try:
            raw = path.read_bytes()
            text = raw.decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.warning(f"header scan skipped {path.relative_to(root)}: {e}")
            continue

        new_text = _HEADER_RULE.rewrite(text, version, count=0)
        if new_text == text:
            continue

        try:
            restore_point.add(path)
            atomic_write_bytes(path, new_text.encode("utf-8"))
        except OSError as e:
            console.warning(f"header update failed for {path.relative_to(root)}: {e}")
            continue

        console.print(f"  header {path.relative_to(root)}", Style.DIM)
        updated.append(path)

    return tuple(updated)
