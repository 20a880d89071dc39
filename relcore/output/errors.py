"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relcore.core.errors import ErrorCode
from relcore.output.console import Style
from relcore.release.errors import (
    BuildFailed,
    EnvironmentInvalid,
    InvalidBumpKind,
    InvalidVersionFormat,
    NoFilesUpdated,
    NoVersionFound,
    PushFailed,
    ReleaseError,
    RewriteFailed,
    VcsOperationFailed,
    VersionComputationFailed,
    VersionInconsistent,
)

if TYPE_CHECKING:
    from relcore.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a release error with every diagnostic it carries."""
    console.error(error.message)
    match error:
        case VersionInconsistent(locations=locations):
            for loc in locations:
                console.print(f"  {loc.pretty()}", Style.DIM)
        case NoVersionFound(searched=searched):
            if searched:
                console.print(f"searched: {', '.join(searched)}", Style.DIM)
        case PushFailed(pushed=pushed) if pushed:
            console.print(f"already on the remote: {', '.join(pushed)}", Style.DIM)
        case _:
            pass
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    """Get exit code for a release error."""
    match error:
        case EnvironmentInvalid():
            return int(ErrorCode.ENV_ERROR)
        case VersionInconsistent() | NoVersionFound():
            return int(ErrorCode.VERSION_ERROR)
        case InvalidVersionFormat() | InvalidBumpKind() | VersionComputationFailed():
            return int(ErrorCode.USER_ERROR)
        case RewriteFailed() | NoFilesUpdated():
            return int(ErrorCode.IO_ERROR)
        case BuildFailed():
            return int(ErrorCode.BUILD_ERROR)
        case VcsOperationFailed():
            return int(ErrorCode.VCS_ERROR)
        case PushFailed():
            return int(ErrorCode.NETWORK_ERROR)
