"""Application settings from environment variables.

All variables use the SAFE_EXEC_ prefix. Invalid values log a warning and
fall back to the default.
"""

import logging
import os
from dataclasses import dataclass, field

from safe_exec.models import DEFAULT_MAX_BUFFER, DEFAULT_TIMEOUT_MS, SafeCommandOptions

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_COMMANDS = ["echo", "grep", "ls"]


@dataclass
class Settings:
    """Settings for the safe_exec server.

    The executors themselves are stateless; these values only shape the
    options the server passes to them.
    """

    # Command limits
    timeout_ms: int = field(default=DEFAULT_TIMEOUT_MS)
    max_buffer: int = field(default=DEFAULT_MAX_BUFFER)
    base_dir: str = field(default_factory=os.getcwd)
    allowed_commands: list[str] = field(
        default_factory=lambda: list(DEFAULT_ALLOWED_COMMANDS)
    )

    # Transport
    transport: str = field(default="http")
    http_host: str = field(default="127.0.0.1")
    http_port: int = field(default=8000)

    # Logging
    log_level: str = field(default="INFO")
    log_payloads: bool = field(default=False)
    slow_threshold_ms: int = field(default=1000)
    include_traceback: bool = field(default=False)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            timeout_ms=cls._get_positive_int("SAFE_EXEC_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            max_buffer=cls._get_positive_int("SAFE_EXEC_MAX_BUFFER", DEFAULT_MAX_BUFFER),
            base_dir=os.path.abspath(os.getenv("SAFE_EXEC_BASE_DIR") or os.getcwd()),
            allowed_commands=cls._get_allowed_commands(),
            transport=cls._get_transport(),
            http_host=os.getenv("SAFE_EXEC_HTTP_HOST", "127.0.0.1"),
            http_port=cls._get_positive_int("SAFE_EXEC_HTTP_PORT", 8000),
            log_level=os.getenv("SAFE_EXEC_LOG_LEVEL", "INFO").upper(),
            log_payloads=cls._get_bool("SAFE_EXEC_LOG_PAYLOADS", False),
            slow_threshold_ms=cls._get_positive_int("SAFE_EXEC_SLOW_THRESHOLD_MS", 1000),
            include_traceback=cls._get_bool("SAFE_EXEC_INCLUDE_TRACEBACK", False),
        )

    def command_options(self) -> SafeCommandOptions:
        """Build executor options scoped to the base directory."""
        return SafeCommandOptions(
            cwd=self.base_dir,
            timeout=self.timeout_ms,
            max_buffer=self.max_buffer,
        )

    @staticmethod
    def _get_positive_int(key: str, default: int) -> int:
        """Get a positive integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set or invalid

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            parsed = int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

        if parsed <= 0:
            logger.warning("%s must be > 0, got %d. Using default: %d", key, parsed, default)
            return default
        return parsed

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_allowed_commands() -> list[str]:
        """Get the command allowlist from a comma-separated variable."""
        value = os.getenv("SAFE_EXEC_ALLOWED_COMMANDS", "").strip()
        if not value:
            return list(DEFAULT_ALLOWED_COMMANDS)
        return [c.strip() for c in value.split(",") if c.strip()]

    @staticmethod
    def _get_transport() -> str:
        transport = os.getenv("SAFE_EXEC_TRANSPORT", "").lower()
        if transport in ("http", "stdio"):
            return transport
        return "http"
