"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    PreviewConsole,
    RichConsole,
    Style,
)

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "PreviewConsole",
    "RichConsole",
    "Style",
]
