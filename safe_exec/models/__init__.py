"""Data models for safe_exec."""

from safe_exec.models.command import (
    DEFAULT_MAX_BUFFER,
    DEFAULT_TIMEOUT_MS,
    CommandResult,
    OutputCallback,
    SafeCommandOptions,
    SpawnOptions,
)

__all__ = [
    "CommandResult",
    "DEFAULT_MAX_BUFFER",
    "DEFAULT_TIMEOUT_MS",
    "OutputCallback",
    "SafeCommandOptions",
    "SpawnOptions",
]
