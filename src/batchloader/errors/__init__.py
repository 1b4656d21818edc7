"""Error handling for batchloader.

- ErrorCode: machine-readable failure classification
- LoaderError and subclasses: InvalidArgument, InvalidResult, UpstreamError
- Result/Ok/Err: explicit per-key outcome type
"""

from .errors import ErrorCode, InvalidArgument, InvalidResult, LoaderError, UpstreamError, error_code
from .result import Err, Ok, Result

__all__ = [
    # Errors
    "ErrorCode", "LoaderError", "InvalidArgument", "InvalidResult", "UpstreamError", "error_code",
    # Result type
    "Result", "Ok", "Err",
]
