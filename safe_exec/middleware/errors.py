"""Error handling middleware for consistent error logging."""

import logging
from collections import Counter
from collections.abc import Callable
from typing import Any

from fastmcp.server.middleware import MiddlewareContext

from safe_exec.middleware.base import SafeExecMiddleware

ErrorCallback = Callable[[Exception, MiddlewareContext], None]


class ErrorHandlingMiddleware(SafeExecMiddleware):
    """Middleware that logs and counts exceptions escaping a handler.

    Counts are kept per exception type and per tool. The exception is always
    re-raised so fastmcp turns it into an MCP error response.

    Example:
        >>> def on_error(exc, ctx):
        ...     print(f"Error in {ctx.method}: {exc}")
        >>> server.add_middleware(ErrorHandlingMiddleware(error_callback=on_error))
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        include_traceback: bool = False,
        error_callback: ErrorCallback | None = None,
    ) -> None:
        """Initialize error handling middleware.

        Args:
            logger: Optional custom logger.
            include_traceback: Log the traceback along with the message.
            error_callback: Called with (exception, context) after logging.
        """
        super().__init__(logger=logger)
        self.include_traceback = include_traceback
        self.error_callback = error_callback
        self._by_type: Counter[str] = Counter()
        self._by_tool: Counter[str] = Counter()

    def get_error_stats(self) -> dict[str, int]:
        """Error counts keyed by exception type name."""
        return dict(self._by_type)

    def get_tool_error_stats(self) -> dict[str, int]:
        """Error counts keyed by tool name, for tool calls only."""
        return dict(self._by_tool)

    def reset_stats(self) -> None:
        self._by_type.clear()
        self._by_tool.clear()

    def _record(self, error: Exception, context: MiddlewareContext) -> None:
        self._by_type[type(error).__name__] += 1
        if context.method == "tools/call":
            tool_name = getattr(context.message, "name", None) or "unknown"
            self._by_tool[tool_name] += 1

    async def on_message(
        self,
        context: MiddlewareContext,
        call_next: Any,
    ) -> Any:
        """Pass the request through, recording any exception it raises."""
        try:
            return await call_next(context)
        except Exception as e:
            self._record(e, context)
            self.logger.error(
                "Error in %s: %s: %s",
                context.method,
                type(e).__name__,
                e,
                exc_info=e if self.include_traceback else None,
            )
            if self.error_callback is not None:
                try:
                    self.error_callback(e, context)
                except Exception as callback_error:
                    self.logger.warning("Error callback failed: %s", callback_error)
            raise
