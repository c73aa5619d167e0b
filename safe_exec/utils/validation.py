"""Command, argument, and name validation utilities.

Arguments are always handed to the OS as a discrete argv list and never joined
into a shell line, so the command name and the argument types are the only
places a caller can smuggle in shell syntax.
"""

import re
from collections.abc import Sequence
from typing import Any, Final

# Letters, digits, dot, underscore, hyphen, and forward slash (for paths).
COMMAND_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9._/-]+")

# npm-style names: optional @scope/ prefix, lowercase only.
PACKAGE_NAME_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:@[a-z0-9~-][a-z0-9._~-]*/)?[a-z0-9~-][a-z0-9._~-]*"
)

FILENAME_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9._-]+")


class SafeCommandError(ValueError):
    """Base class for rejected command input."""

    pass


class InvalidCommandError(SafeCommandError):
    """Command name contains characters outside the safe set."""

    pass


class InvalidArgumentTypeError(SafeCommandError, TypeError):
    """An argument is not a string."""

    pass


class InvalidPackageNameError(SafeCommandError):
    """Package name is not a valid npm identifier."""

    pass


def validate_command(command: Any) -> str:
    """Validate that a command name contains only safe characters.

    Args:
        command: Executable name or path (e.g. "echo", "/usr/bin/env")

    Returns:
        The command, unchanged

    Raises:
        InvalidCommandError: If the command contains unsafe characters
    """
    if not isinstance(command, str) or not COMMAND_PATTERN.fullmatch(command):
        raise InvalidCommandError(
            f"Invalid command: {command!r}. Command contains unsafe characters."
        )
    return command


def validate_arguments(args: Any) -> list[str]:
    """Validate that every argument is a string.

    Args:
        args: Sequence of arguments

    Returns:
        The arguments as a new list

    Raises:
        InvalidArgumentTypeError: If args is not a sequence of strings
    """
    if isinstance(args, (str, bytes)) or not isinstance(args, Sequence):
        raise InvalidArgumentTypeError(
            f"Invalid argument type: {type(args).__name__}. "
            "Arguments must be a list of strings."
        )
    for arg in args:
        if not isinstance(arg, str):
            raise InvalidArgumentTypeError(
                f"Invalid argument type: {type(arg).__name__}. "
                "All arguments must be strings."
            )
    return list(args)


def is_valid_package_name(name: Any) -> bool:
    """Check a package name against npm naming rules."""
    return isinstance(name, str) and PACKAGE_NAME_PATTERN.fullmatch(name) is not None


def is_valid_filename(name: Any) -> bool:
    """Check that a filename is a single safe path component.

    Only letters, digits, dot, underscore and hyphen are allowed, and ``..``
    is rejected anywhere in the name.
    """
    if not isinstance(name, str) or not FILENAME_PATTERN.fullmatch(name):
        return False
    return ".." not in name
