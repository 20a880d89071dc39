from __future__ import annotations

import shutil
import sys
import time
from pathlib import Path

from relcore.core.config import BuildConfig
from relcore.core.result import Err, Ok, Result
from relcore.output.console import ConsoleProtocol, Style
from relcore.platform.process import run_live
from relcore.release.errors import BuildFailed

# Filesystems with coarse mtimes can stamp a fresh artifact slightly before
# the build started.
_MTIME_SLACK_SECONDS = 2.0


def newest_artifact(root: Path, pattern: str, *, since: float) -> Path | None:
    candidates = [
        p for p in root.glob(pattern) if p.is_file() and p.stat().st_mtime >= since - _MTIME_SLACK_SECONDS
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


class CommandBuilder:
    """Runs the configured build command and locates what it produced."""

    def __init__(self, *, root: Path, config: BuildConfig, console: ConsoleProtocol) -> None:
        self._root = root
        self._config = config
        self._console = console

    @property
    def command(self) -> list[str]:
        cmd = list(self._config.command)
        # Build with the interpreter relcore runs under, not whatever "python" is on PATH.
        if cmd and cmd[0] == "python":
            cmd[0] = sys.executable
        return cmd

    def describe(self) -> str:
        return " ".join(self._config.command)

    def is_available(self) -> bool:
        cmd = self.command
        return bool(cmd) and shutil.which(cmd[0]) is not None

    def build(self) -> Result[Path, BuildFailed]:
        started = time.time()
        self._console.print(f"$ {self.describe()}", Style.DIM)

        result = run_live(self.command, cwd=self._root, timeout=self._config.timeout)
        if isinstance(result, Err):
            e = result.error
            return Err(
                BuildFailed(
                    reason=e.detail,
                    returncode=e.returncode if e.returncode >= 0 else None,
                )
            )

        artifact = newest_artifact(self._root, self._config.artifacts, since=started)
        if artifact is None:
            return Err(
                BuildFailed(
                    reason=f"no artifact matching '{self._config.artifacts}' was produced",
                    hint="Check [build].artifacts in release.toml.",
                )
            )

        self._console.success(f"built {artifact.relative_to(self._root)}")
        return Ok(artifact)
