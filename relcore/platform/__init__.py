"""Platform abstraction layer (subprocesses and filesystem writes)."""

from .files import atomic_write_bytes, atomic_write_text
from .process import ProcessError, run, run_live

__all__ = [
    # files
    "atomic_write_bytes",
    "atomic_write_text",
    # process
    "ProcessError",
    "run",
    "run_live",
]
