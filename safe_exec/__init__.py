"""safe_exec: run external commands without ever going through a shell."""

from safe_exec.models import CommandResult, SafeCommandOptions, SpawnOptions
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
from safe_exec.utils.paths import (
    DirectoryTraversalError,
    InvalidPathError,
    OutsideBaseDirectoryError,
    sanitize_file_path,
)
from safe_exec.utils.shell import escape_shell_arg
from safe_exec.utils.validation import (
    InvalidArgumentTypeError,
    InvalidCommandError,
    InvalidPackageNameError,
    SafeCommandError,
    is_valid_filename,
    is_valid_package_name,
    validate_arguments,
    validate_command,
)

__version__ = "0.1.0"

__all__ = [
    "CommandError",
    "CommandExitError",
    "CommandResult",
    "CommandTimeoutError",
    "DirectoryTraversalError",
    "escape_shell_arg",
    "InvalidArgumentTypeError",
    "InvalidCommandError",
    "InvalidPackageNameError",
    "InvalidPathError",
    "is_valid_filename",
    "is_valid_package_name",
    "MaxBufferExceededError",
    "OutsideBaseDirectoryError",
    "ProcessHandle",
    "ProcessTerminatedError",
    "safe_execute",
    "safe_npm_install",
    "safe_read_file",
    "safe_spawn",
    "SafeCommandError",
    "SafeCommandOptions",
    "sanitize_file_path",
    "SpawnedCommand",
    "SpawnOptions",
    "validate_arguments",
    "validate_command",
]
