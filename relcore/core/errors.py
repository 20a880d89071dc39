"""Error codes for CLI exit status.

Every release failure maps onto one of these codes so scripts driving
relcore (CI jobs, make targets) can tell a dirty working tree apart from a
failed push without parsing output.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success (also a release cancelled at the confirmation prompt)
    - 1: User error (bad version string, unknown bump kind, bad config)
    - 2: Environment error (no git repo, dirty tree, missing builder, old Python)
    - 3: Build error (the build command failed or produced no artifact)
    - 4: Network error (push to the remote failed)
    - 5: I/O error (version files could not be rewritten)
    - 6: Version error (registered files disagree or carry no version)
    - 7: VCS error (commit or tag failed)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    VERSION_ERROR = 6
    VCS_ERROR = 7

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
