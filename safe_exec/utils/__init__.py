"""Utilities for safe_exec."""

from safe_exec.utils.console import ColorfulFormatter, MCPRequestFormatter
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

__all__ = [
    "ColorfulFormatter",
    "DirectoryTraversalError",
    "escape_shell_arg",
    "InvalidArgumentTypeError",
    "InvalidCommandError",
    "InvalidPackageNameError",
    "InvalidPathError",
    "is_valid_filename",
    "is_valid_package_name",
    "MCPRequestFormatter",
    "OutsideBaseDirectoryError",
    "SafeCommandError",
    "sanitize_file_path",
    "validate_arguments",
    "validate_command",
]
