from __future__ import annotations

from pathlib import Path

from relcore.core.result import Err, Ok
from relcore.output.console import MockConsole
from relcore.release.environment import validate_environment
from relcore.release.errors import EnvironmentInvalid
from relcore.version.semver import bump

from .fakes import FakeBuilder, FakeRepo


def _check(
    tmp_path: Path,
    *,
    repo: FakeRepo | None = None,
    builder: FakeBuilder | None = None,
    with_builder: bool = True,
    python: tuple[int, int] = (3, 12),
    force: bool = False,
    console: MockConsole | None = None,
):
    return validate_environment(
        repo=repo or FakeRepo(),
        builder=(builder or FakeBuilder(tmp_path)) if with_builder else None,
        bumper=bump,
        python_version=python,
        min_python=(3, 12),
        force=force,
        console=console or MockConsole(),
    )


def test_all_preconditions_met(tmp_path: Path) -> None:
    console = MockConsole()
    assert _check(tmp_path, console=console) == Ok(None)
    assert console.find("environment validation passed")


def test_not_a_repository(tmp_path: Path) -> None:
    result = _check(tmp_path, repo=FakeRepo(exists_=False))
    assert isinstance(result, Err)
    assert result.error.reason == "not inside a git repository"


def test_dirty_tree_lists_paths(tmp_path: Path) -> None:
    console = MockConsole()
    dirty = tuple(f"file{i}.py" for i in range(7))

    result = _check(tmp_path, repo=FakeRepo(dirty=dirty), console=console)

    assert isinstance(result, Err)
    assert result.error == EnvironmentInvalid(
        reason="working tree has 7 uncommitted change(s)",
        hint="Commit or stash them, or pass --force.",
    )
    assert console.find(".M file0.py")
    assert console.find("... and 2 more")


def test_force_skips_clean_check(tmp_path: Path) -> None:
    console = MockConsole()
    result = _check(tmp_path, repo=FakeRepo(dirty=("a.py",)), force=True, console=console)
    assert result == Ok(None)
    assert console.has_warning()


def test_status_failure_is_an_error(tmp_path: Path) -> None:
    result = _check(tmp_path, repo=FakeRepo(fail={"status": "index.lock exists"}))
    assert isinstance(result, Err)
    assert "index.lock" in result.error.reason


def test_missing_builder(tmp_path: Path) -> None:
    result = _check(tmp_path, with_builder=False)
    assert isinstance(result, Err)
    assert result.error.reason == "no builder configured"


def test_builder_not_on_path(tmp_path: Path) -> None:
    result = _check(tmp_path, builder=FakeBuilder(tmp_path, available=False))
    assert isinstance(result, Err)
    assert result.error.reason == "build command not found: python -m build"


def test_python_too_old(tmp_path: Path) -> None:
    result = _check(tmp_path, python=(3, 11))
    assert isinstance(result, Err)
    assert result.error.reason == "Python 3.12+ required, running 3.11"
