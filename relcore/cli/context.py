from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relcore.core.config import ReleaseConfig, load_config_or_default
from relcore.core.errors import ErrorCode
from relcore.core.result import Err
from relcore.output.console import ConsoleProtocol, RichConsole

ROOT_ENV = "RELCORE_ROOT"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: ReleaseConfig
    console: ConsoleProtocol


def resolve_root() -> Path:
    override = os.environ.get(ROOT_ENV)
    if override:
        return Path(override)
    return Path.cwd()


def build_context() -> CLIContext:
    root = resolve_root()
    if not root.is_dir():
        typer.echo(f"error: project root does not exist: {root}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config_result = load_config_or_default(root)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(root=root, config=config_result.value, console=RichConsole())
