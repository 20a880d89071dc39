"""Tests for relcore.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from relcore.core.result import Err, Ok
from relcore.platform.process import ProcessError, run, run_live


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("git", "status"),
            returncode=1,
            stdout="",
            stderr="fatal: not a git repository",
        )
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("git", "-C", "/repo", "push", "origin", "main"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "git -C /repo ... failed (exit 1)"

    def test_detail_prefers_last_stderr_line(self) -> None:
        error = ProcessError(("git",), 1, "", "hint: something\nfatal: rejected\n")
        assert error.detail == "fatal: rejected"

    def test_detail_falls_back_to_stdout_then_summary(self) -> None:
        assert ProcessError(("git",), 1, "nothing to commit\n", "").detail == "nothing to commit"
        assert ProcessError(("git",), 1, "", "").detail == "git failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(42)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert result.error.stderr == "bad"

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr


class TestRunLive:
    def test_success(self, tmp_path: Path) -> None:
        assert isinstance(run_live([sys.executable, "-c", "pass"], cwd=tmp_path), Ok)

    def test_failure_keeps_exit_code(self, tmp_path: Path) -> None:
        result = run_live([sys.executable, "-c", "raise SystemExit(3)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 3
