from __future__ import annotations

from pathlib import Path

import pytest

import relcore.version.backup as backup_mod
from relcore.output.console import MockConsole
from relcore.version.backup import BackupSet, guard


def test_capture_skips_missing_files(tmp_path: Path) -> None:
    present = tmp_path / "pyproject.toml"
    present.write_bytes(b'version = "1.0.0"\r\n')

    backup = BackupSet.capture([present, tmp_path / "missing.toml"])

    assert len(backup) == 1
    assert present in backup
    assert backup.original(present) == b'version = "1.0.0"\r\n'


def test_add_keeps_first_snapshot(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"first")
    backup = BackupSet.capture([path])
    path.write_bytes(b"second")

    assert backup.add(path) is False
    assert backup.original(path) == b"first"


def test_restore_is_byte_exact(tmp_path: Path) -> None:
    path = tmp_path / "package.json"
    original = b'{\r\n  "version": "1.0.0"\r\n}'
    path.write_bytes(original)
    backup = BackupSet.capture([path])
    path.write_bytes(b"changed")

    assert backup.restore() == []
    assert path.read_bytes() == original


def test_restore_leaves_unchanged_files_alone(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"same")
    backup = BackupSet.capture([path])
    writes: list[Path] = []
    monkeypatch.setattr(backup_mod, "atomic_write_bytes", lambda p, _c: writes.append(p))

    backup.restore()

    assert writes == []


def test_restore_continues_past_failures(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    first.write_bytes(b"a")
    second.write_bytes(b"b")
    backup = BackupSet.capture([first, second])
    first.write_bytes(b"A")
    second.write_bytes(b"B")

    real_write = backup_mod.atomic_write_bytes

    def flaky_write(path: Path, content: bytes) -> None:
        if path == first:
            raise OSError("read-only")
        real_write(path, content)

    monkeypatch.setattr(backup_mod, "atomic_write_bytes", flaky_write)
    console = MockConsole()

    assert backup.restore_and_report(console) is False
    assert second.read_bytes() == b"b"
    assert console.find("could not restore")


def test_merge_and_discard(tmp_path: Path) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"1")
    b.write_bytes(b"2")
    backup = BackupSet.capture([a])
    backup.merge(BackupSet.capture([a, b]))

    assert backup.paths == (a, b)
    backup.discard()
    assert len(backup) == 0


def test_guard_restores_and_reraises(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"original")
    backup = BackupSet.capture([path])
    console = MockConsole()

    with pytest.raises(RuntimeError, match="interrupted"):
        with guard(backup, console):
            path.write_bytes(b"half-written")
            raise RuntimeError("interrupted")

    assert path.read_bytes() == b"original"
    assert console.find("restoring version files from backup")


def test_guard_is_silent_on_success(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_bytes(b"original")
    backup = BackupSet.capture([path])

    with guard(backup, MockConsole()):
        path.write_bytes(b"new")

    assert path.read_bytes() == b"new"
