"""safe_exec FastMCP server.

A thin wrapper that exposes the executors as MCP tools. All command handling
is delegated to the tools/ and services/ modules.
"""

import logging
import os
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from safe_exec.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from safe_exec.services import get_settings
from safe_exec.tools import npm_install, read_file, run_command
from safe_exec.utils.console import MCPRequestFormatter


def _configure_logging() -> None:
    """Configure colorful logging for the safe_exec package.

    Called at module load time so loggers are configured however the server
    is started.
    """
    log_level = os.getenv("SAFE_EXEC_LOG_LEVEL", "INFO").upper()
    use_colors = os.getenv("SAFE_EXEC_LOG_COLORS", "true").lower() != "false"
    if not sys.stderr.isatty():
        use_colors = False

    package_logger = logging.getLogger("safe_exec")
    package_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Only add handler if not already configured
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(MCPRequestFormatter(use_colors=use_colors))
        package_logger.addHandler(handler)
        package_logger.propagate = False

    for noisy_logger in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "fastmcp",
        "starlette",
        "anyio",
    ]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


_configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Log the effective execution limits at startup and shutdown."""
    settings = get_settings()
    logger.info("safe_exec server starting up")
    logger.info(
        "Base directory: %s, timeout=%dms, max_buffer=%d bytes",
        settings.base_dir,
        settings.timeout_ms,
        settings.max_buffer,
    )
    logger.info("Allowed commands: %s", ", ".join(sorted(settings.allowed_commands)))
    logger.info("safe_exec server ready to accept connections")
    try:
        yield {"allowed_commands": list(settings.allowed_commands)}
    finally:
        logger.info("safe_exec server shutting down")


def configure_middleware(server: FastMCP) -> None:
    """Add middleware in order: ErrorHandling -> Logging (with timing).

    Args:
        server: The FastMCP server to configure.
    """
    settings = get_settings()
    server.add_middleware(ErrorHandlingMiddleware(include_traceback=settings.include_traceback))
    server.add_middleware(
        LoggingMiddleware(
            include_payloads=settings.log_payloads,
            slow_threshold_ms=float(settings.slow_threshold_ms),
        )
    )


def create_server() -> FastMCP:
    """Create and configure the MCP server with middleware and tools.

    Returns:
        Configured FastMCP server instance
    """
    server = FastMCP("safe_exec", lifespan=app_lifespan)

    configure_middleware(server)

    server.tool()(run_command)
    server.tool()(read_file)
    server.tool()(npm_install)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server


# Default server instance
mcp = create_server()
