from __future__ import annotations

import os
import sys
import time
from pathlib import Path

import pytest

import relcore.release.builder as builder_mod
from relcore.core.config import BuildConfig
from relcore.core.result import Err, Ok
from relcore.output.console import MockConsole
from relcore.platform.process import ProcessError
from relcore.release.builder import CommandBuilder, newest_artifact


def test_build_returns_newest_artifact(tmp_path: Path) -> None:
    old = tmp_path / "dist" / "pkg-0.9.0.tar.gz"
    old.parent.mkdir()
    old.write_bytes(b"")
    stale = time.time() - 3600
    os.utime(old, (stale, stale))

    command = (
        sys.executable,
        "-c",
        "import pathlib; pathlib.Path('dist/pkg-1.0.0.tar.gz').write_bytes(b'x')",
    )
    builder = CommandBuilder(root=tmp_path, config=BuildConfig(command=command), console=MockConsole())

    result = builder.build()

    assert result == Ok(tmp_path / "dist" / "pkg-1.0.0.tar.gz")


def test_build_without_fresh_artifact_fails(tmp_path: Path) -> None:
    builder = CommandBuilder(
        root=tmp_path,
        config=BuildConfig(command=(sys.executable, "-c", "pass")),
        console=MockConsole(),
    )

    result = builder.build()

    assert isinstance(result, Err)
    assert "no artifact matching 'dist/*'" in result.error.reason


def test_build_command_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run_live(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        return Err(ProcessError(command=tuple(cmd), returncode=2, stdout="", stderr=""))

    monkeypatch.setattr(builder_mod, "run_live", fake_run_live)
    builder = CommandBuilder(root=tmp_path, config=BuildConfig(), console=MockConsole())

    result = builder.build()

    assert isinstance(result, Err)
    assert result.error.returncode == 2


def test_timeout_has_no_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, object] = {}

    def fake_run_live(cmd: list[str], cwd: Path, env: object = None, *, timeout: float | None = None):
        seen["timeout"] = timeout
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr="Command timed out"))

    monkeypatch.setattr(builder_mod, "run_live", fake_run_live)
    builder = CommandBuilder(root=tmp_path, config=BuildConfig(timeout=5), console=MockConsole())

    result = builder.build()

    assert isinstance(result, Err)
    assert result.error.returncode is None
    assert seen["timeout"] == 5


def test_python_resolves_to_running_interpreter(tmp_path: Path) -> None:
    builder = CommandBuilder(root=tmp_path, config=BuildConfig(), console=MockConsole())
    assert builder.command[0] == sys.executable
    assert builder.describe() == "python -m build"
    assert builder.is_available()


def test_unknown_command_is_unavailable(tmp_path: Path) -> None:
    config = BuildConfig(command=("definitely-not-a-build-tool-123",))
    builder = CommandBuilder(root=tmp_path, config=config, console=MockConsole())
    assert not builder.is_available()


def test_newest_artifact_ignores_directories(tmp_path: Path) -> None:
    (tmp_path / "dist" / "sub").mkdir(parents=True)
    assert newest_artifact(tmp_path, "dist/*", since=0.0) is None
