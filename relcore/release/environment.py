from __future__ import annotations

from relcore.core.result import Err, Ok, Result
from relcore.output.console import ConsoleProtocol, Style
from relcore.release.contracts import Builder, Bumper, VcsProtocol
from relcore.release.errors import EnvironmentInvalid

_DIRTY_PREVIEW = 5


def _format_python(version: tuple[int, int]) -> str:
    return f"{version[0]}.{version[1]}"


def validate_environment(
    *,
    repo: VcsProtocol,
    builder: Builder | None,
    bumper: Bumper | None,
    python_version: tuple[int, int],
    min_python: tuple[int, int],
    force: bool,
    console: ConsoleProtocol,
) -> Result[None, EnvironmentInvalid]:
    """Check every precondition before anything is touched.

    ``force`` only lifts the clean-tree requirement.
    """
    console.step("validating environment")

    if not repo.exists():
        return Err(
            EnvironmentInvalid(
                reason="not inside a git repository",
                hint="Run from the project checkout, or pass --root.",
            )
        )

    if force:
        console.warning("skipping clean working tree check (--force)")
    else:
        status = repo.status()
        if isinstance(status, Err):
            return Err(
                EnvironmentInvalid(
                    reason=f"cannot read git status: {status.error.message}",
                )
            )
        if not status.value.is_clean:
            entries = status.value.entries
            for entry in entries[:_DIRTY_PREVIEW]:
                console.print(f"  {entry.pretty_xy()} {entry.path}", Style.DIM)
            if len(entries) > _DIRTY_PREVIEW:
                console.print(f"  ... and {len(entries) - _DIRTY_PREVIEW} more", Style.DIM)
            return Err(
                EnvironmentInvalid(
                    reason=f"working tree has {len(entries)} uncommitted change(s)",
                    hint="Commit or stash them, or pass --force.",
                )
            )

    if builder is None:
        return Err(EnvironmentInvalid(reason="no builder configured"))
    if not builder.is_available():
        return Err(
            EnvironmentInvalid(
                reason=f"build command not found: {builder.describe()}",
                hint="Install it or change [build].command in release.toml.",
            )
        )

    if bumper is None:
        return Err(EnvironmentInvalid(reason="no version bumper configured"))

    if python_version < min_python:
        return Err(
            EnvironmentInvalid(
                reason=(
                    f"Python {_format_python(min_python)}+ required, "
                    f"running {_format_python(python_version)}"
                ),
                hint="Adjust [runtime].min_python in release.toml if this is intended.",
            )
        )

    console.success("environment validation passed")
    return Ok(None)
