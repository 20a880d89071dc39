"""Core domain types shared by every relcore layer.

``config`` is deliberately not re-exported here: it depends on the version
registry, which itself depends on ``core.result``.
"""

from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
