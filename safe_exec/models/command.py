"""Command execution data models."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_BUFFER = 1_048_576  # 1MB

OutputCallback = Callable[[str], None]


@dataclass(frozen=True)
class CommandResult:
    """Result of a local command execution.

    ``exit_code`` is None when the process never exited normally (it could not
    be started, or a signal killed it). ``error`` carries the failure detail.
    """

    stdout: str
    stderr: str
    exit_code: int | None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        """True when the command ran and exited with status 0."""
        return self.exit_code == 0 and self.error is None


@dataclass(frozen=True)
class SafeCommandOptions:
    """Options shared by the buffered and streaming executors.

    Attributes:
        cwd: Working directory for the child process.
        env: Replacement environment. Defaults to the host environment.
        timeout: Wall-clock limit in milliseconds.
        max_buffer: Limit on combined stdout/stderr bytes (buffered only).
    """

    cwd: str | None = None
    env: Mapping[str, str] | None = None
    timeout: int | None = None
    max_buffer: int | None = None


@dataclass(frozen=True)
class SpawnOptions(SafeCommandOptions):
    """Options for streaming execution."""

    on_stdout: OutputCallback | None = None
    on_stderr: OutputCallback | None = None
