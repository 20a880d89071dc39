"""``relcore version``: inspect and rewrite the project version without releasing."""

from __future__ import annotations

import typer

from relcore.cli.commands._helpers import unwrap_or_exit
from relcore.cli.context import CLIContext, build_context
from relcore.output.console import PreviewConsole, Style
from relcore.version.rewrite import apply_version
from relcore.version.semver import bump as compute_bump
from relcore.version.semver import parse_custom
from relcore.version.validator import scan, validate

version_app = typer.Typer(add_completion=False, no_args_is_help=True)


@version_app.command("check")
def check() -> None:
    """Check that every registered file carries the same version."""
    ctx = build_context()
    unwrap_or_exit(validate(root=ctx.root, registry=ctx.config.registry, console=ctx.console), ctx)


@version_app.command("next")
def next_version(
    kind: str = typer.Argument(..., help="patch, minor, major or beta"),
) -> None:
    """Print the version a bump would produce."""
    ctx = build_context()
    current = unwrap_or_exit(
        validate(root=ctx.root, registry=ctx.config.registry, console=ctx.console), ctx
    )
    new = unwrap_or_exit(compute_bump(current, kind), ctx)
    typer.echo(new)


@version_app.command("bump")
def bump(
    kind: str = typer.Argument(..., help="patch, minor, major or beta"),
    dry_run: bool = typer.Option(False, "--dry-run", "-d", help="Show the change only."),
    no_headers: bool = typer.Option(False, "--no-headers", help="Skip @version header tags."),
) -> None:
    """Bump the version in every registered file (no build, no git)."""
    ctx = build_context()
    current = unwrap_or_exit(
        validate(root=ctx.root, registry=ctx.config.registry, console=ctx.console), ctx
    )
    new = unwrap_or_exit(compute_bump(current, kind), ctx)
    _apply(ctx, current=current, new=new, dry_run=dry_run, headers=not no_headers)


@version_app.command("set")
def set_version(
    version: str = typer.Argument(..., help="Explicit version, e.g. 2.0.0 or 2.0.0-rc.1"),
    dry_run: bool = typer.Option(False, "--dry-run", "-d", help="Show the change only."),
    no_headers: bool = typer.Option(False, "--no-headers", help="Skip @version header tags."),
) -> None:
    """Write an explicit version into every registered file.

    Unlike ``bump``, the files need not agree beforehand; this is how a
    diverged project is brought back in line.
    """
    ctx = build_context()
    new = unwrap_or_exit(parse_custom(version), ctx)

    found = scan(ctx.root, ctx.config.registry)
    for loc in found.found:
        ctx.console.print(f"  {loc.pretty()}", Style.DIM)
    current = ", ".join(sorted(found.versions)) or "none"
    _apply(ctx, current=current, new=new, dry_run=dry_run, headers=not no_headers)


def _apply(ctx: CLIContext, *, current: str, new: str, dry_run: bool, headers: bool) -> None:
    console = ctx.console
    if dry_run:
        preview = PreviewConsole(console)
        preview.print(f"{current} -> {new}")
        for entry in ctx.config.registry:
            preview.print(f"would update {entry.path}")
        return

    update = unwrap_or_exit(
        apply_version(
            root=ctx.root,
            registry=ctx.config.registry,
            version=new,
            headers=ctx.config.headers if headers else None,
            console=console,
        ),
        ctx,
    )
    update.restore_point.discard()
    console.success(f"{current} -> {new}")
