"""Logging middleware for tool call tracking."""

import json
import logging
import re
import time
from typing import Any

from fastmcp.server.middleware import MiddlewareContext

from safe_exec.middleware.base import SafeExecMiddleware

_EXIT_CODE_LINE = re.compile(r"\[exit code: (-?\d+|None)\]")


def _result_text(result: Any) -> str | None:
    """Pull the text out of a tool result, if it carries any."""
    if isinstance(result, str):
        return result
    content = getattr(result, "content", None)
    if isinstance(content, (list, tuple)):
        return "".join(getattr(item, "text", "") or "" for item in content)
    return None


class LoggingMiddleware(SafeExecMiddleware):
    """Middleware that logs each tool call with its command and outcome.

    Tool results are summarized by the exit code they report. Rejected calls
    (``Error: ...`` results) and calls slower than ``slow_threshold_ms`` are
    logged at WARNING.

    Example:
        >>> server.add_middleware(LoggingMiddleware(slow_threshold_ms=500.0))
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        include_payloads: bool = False,
        max_payload_length: int = 1000,
        slow_threshold_ms: float = 1000.0,
    ) -> None:
        """Initialize logging middleware.

        Args:
            logger: Optional custom logger.
            include_payloads: Also log full arguments and output at DEBUG.
            max_payload_length: Cut logged payloads to this many characters.
            slow_threshold_ms: Calls at or above this duration are flagged.
        """
        super().__init__(logger=logger)
        self.include_payloads = include_payloads
        self.max_payload_length = max_payload_length
        self.slow_threshold_ms = slow_threshold_ms

    def _elapsed(self, start: float) -> tuple[float, str]:
        elapsed_ms = (time.perf_counter() - start) * 1000
        label = f"{elapsed_ms:.1f}ms"
        if elapsed_ms >= self.slow_threshold_ms:
            label += " SLOW!"
        return elapsed_ms, label

    def _payload(self, data: Any) -> str:
        try:
            text = data if isinstance(data, str) else json.dumps(data, default=str)
        except (TypeError, ValueError):
            text = repr(data)
        if len(text) <= self.max_payload_length:
            return text
        return f"{text[: self.max_payload_length]}... [truncated]"

    @staticmethod
    def _call_signature(tool_name: str, args: dict[str, Any] | None) -> str:
        shown = []
        for key, value in (args or {}).items():
            if isinstance(value, str) and len(value) > 50:
                value = value[:50] + "..."
            shown.append(f"{key}={value!r}")
        return f"{tool_name}({', '.join(shown)})"

    def _summarize_result(self, result: Any) -> str:
        """Describe a tool result in a few words."""
        if result is None:
            return "null"
        text = _result_text(result)
        if text is None:
            return type(result).__name__
        if text.startswith("Error:"):
            return "rejected"
        match = _EXIT_CODE_LINE.search(text)
        size = f"{len(text)} chars"
        if match:
            return f"exit_code={match.group(1)}, {size}"
        return size

    async def on_call_tool(
        self,
        context: MiddlewareContext,
        call_next: Any,
    ) -> Any:
        """Log a tool call before it runs and its outcome after."""
        tool_name = getattr(context.message, "name", "unknown")
        args = getattr(context.message, "arguments", None)
        signature = self._call_signature(tool_name, args)

        self.logger.info(">>> TOOL: %s", signature)
        if self.include_payloads and args:
            self.logger.debug("    Args: %s", self._payload(args))

        start = time.perf_counter()
        try:
            result = await call_next(context)
        except Exception as e:
            _, elapsed = self._elapsed(start)
            self.logger.error(
                "!!! TOOL: %s raised %s: %s [%s]", tool_name, type(e).__name__, e, elapsed
            )
            raise

        elapsed_ms, elapsed = self._elapsed(start)
        summary = self._summarize_result(result)
        flagged = summary == "rejected" or elapsed_ms >= self.slow_threshold_ms
        self.logger.log(
            logging.WARNING if flagged else logging.INFO,
            "<<< TOOL: %s -> %s [%s]",
            tool_name,
            summary,
            elapsed,
        )
        if self.include_payloads:
            text = _result_text(result)
            if text:
                self.logger.debug("    Output: %s", self._payload(text))
        return result

    async def on_message(
        self,
        context: MiddlewareContext,
        call_next: Any,
    ) -> Any:
        """Log protocol traffic other than tool calls at DEBUG."""
        if context.method == "tools/call":
            return await call_next(context)

        start = time.perf_counter()
        self.logger.debug(">>> MCP: %s", context.method)
        try:
            result = await call_next(context)
        except Exception as e:
            _, elapsed = self._elapsed(start)
            self.logger.error(
                "!!! MCP: %s raised %s: %s [%s]", context.method, type(e).__name__, e, elapsed
            )
            raise
        _, elapsed = self._elapsed(start)
        self.logger.debug("<<< MCP: %s [%s]", context.method, elapsed)
        return result
