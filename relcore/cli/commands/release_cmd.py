from __future__ import annotations

import typer

from relcore.cli.commands._helpers import exit_with_code, unwrap_or_exit
from relcore.cli.context import build_context
from relcore.core.errors import ErrorCode
from relcore.git.repository import Repository
from relcore.output.errors import release_error_exit_code
from relcore.release.builder import CommandBuilder
from relcore.release.model import ReleasePlan, make_request
from relcore.release.pipeline import ReleaseContext, execute


def _confirm(plan: ReleasePlan) -> bool:
    return typer.confirm(f"Release {plan.tag}?", default=False)


def release(
    kind: str | None = typer.Argument(None, help="patch, minor, major or beta"),
    version: str | None = typer.Option(
        None, "--version", "-v", help="Release an explicit version instead of a bump."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", "-d", help="Preview every step, change nothing."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip the clean-tree check and the confirmation prompt."
    ),
) -> None:
    """Bump, build, commit, tag and push a release."""
    ctx = build_context()
    request = unwrap_or_exit(
        make_request(kind=kind, custom_version=version, dry_run=dry_run, force=force), ctx
    )

    outcome = execute(
        request,
        ReleaseContext(
            root=ctx.root,
            config=ctx.config,
            console=ctx.console,
            repo=Repository(ctx.root),
            builder=CommandBuilder(root=ctx.root, config=ctx.config.build, console=ctx.console),
            confirm=_confirm,
        ),
    )

    if outcome.succeeded:
        return
    if outcome.error is None:
        exit_with_code(int(ErrorCode.USER_ERROR))
    exit_with_code(release_error_exit_code(outcome.error))
