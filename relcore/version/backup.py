"""Byte-exact snapshots of version files.

A ``BackupSet`` is taken right before a batch rewrite and holds the exact
prior bytes of every covered file. It lives in memory for the duration of
one update (or one release run) and is never written to disk.

``guard()`` scopes the snapshot: if the body raises, every covered file is
restored before the exception propagates.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from relcore.output.console import ConsoleProtocol
from relcore.platform.files import atomic_write_bytes


@dataclass(frozen=True, slots=True)
class RestoreFailure:
    path: Path
    reason: str


class BackupSet:
    """Ordered mapping of path -> original bytes."""

    def __init__(self) -> None:
        self._entries: dict[Path, bytes] = {}

    @classmethod
    def capture(cls, paths: Iterable[Path]) -> BackupSet:
        """Snapshot every existing file in ``paths``.

        Raises:
            OSError: if an existing file cannot be read. Nothing has been
                modified at that point.
        """
        backup = cls()
        for path in paths:
            backup.add(path)
        return backup

    def add(self, path: Path) -> bool:
        """Snapshot one more file. Returns False if it was skipped.

        Files already covered keep their first snapshot; missing files are
        not covered at all.
        """
        if path in self._entries or not path.is_file():
            return False
        self._entries[path] = path.read_bytes()
        return True

    def merge(self, other: BackupSet) -> None:
        for path, content in other._entries.items():
            self._entries.setdefault(path, content)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def paths(self) -> tuple[Path, ...]:
        return tuple(self._entries)

    def original(self, path: Path) -> bytes | None:
        return self._entries.get(path)

    def restore(self) -> list[RestoreFailure]:
        """Write every snapshot back. Best effort: keeps going past failures.

        Files whose content already matches are left untouched.
        """
        failures: list[RestoreFailure] = []
        for path, content in self._entries.items():
            try:
                if path.is_file() and path.read_bytes() == content:
                    continue
                atomic_write_bytes(path, content)
            except OSError as e:
                failures.append(RestoreFailure(path=path, reason=str(e)))
        return failures

    def restore_and_report(self, console: ConsoleProtocol) -> bool:
        """Restore and print each failure. Returns True when all files came back."""
        failures = self.restore()
        for failure in failures:
            console.warning(f"could not restore {failure.path}: {failure.reason}")
        return not failures

    def discard(self) -> None:
        self._entries.clear()


@contextmanager
def guard(backup: BackupSet, console: ConsoleProtocol) -> Iterator[BackupSet]:
    """Restore ``backup`` if the managed block raises."""
    try:
        yield backup
    except BaseException:
        console.warning("restoring version files from backup")
        backup.restore_and_report(console)
        raise
