"""safe_exec middleware components."""

from safe_exec.middleware.base import SafeExecMiddleware
from safe_exec.middleware.errors import ErrorHandlingMiddleware
from safe_exec.middleware.logging import LoggingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "LoggingMiddleware",
    "SafeExecMiddleware",
]
