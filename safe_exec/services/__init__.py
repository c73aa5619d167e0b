"""Services for safe_exec."""

from safe_exec.services.executors import (
    CommandError,
    CommandExitError,
    CommandTimeoutError,
    MaxBufferExceededError,
    ProcessHandle,
    ProcessTerminatedError,
    SpawnedCommand,
    safe_execute,
    safe_spawn,
)
from safe_exec.services.recipes import safe_npm_install, safe_read_file
from safe_exec.services.state import get_settings, reset_state, set_settings

__all__ = [
    "CommandError",
    "CommandExitError",
    "CommandTimeoutError",
    "MaxBufferExceededError",
    "ProcessHandle",
    "ProcessTerminatedError",
    "SpawnedCommand",
    "get_settings",
    "reset_state",
    "safe_execute",
    "safe_npm_install",
    "safe_read_file",
    "safe_spawn",
    "set_settings",
]
