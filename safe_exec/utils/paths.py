"""Path sanitization for filesystem-scoped command arguments."""

import os
import re
from typing import Final

from safe_exec.utils.validation import SafeCommandError

_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[\\/]")


class DirectoryTraversalError(SafeCommandError):
    """Path uses parent-directory segments or other traversal tricks."""

    pass


class InvalidPathError(SafeCommandError):
    """Path is empty."""

    pass


class OutsideBaseDirectoryError(DirectoryTraversalError):
    """Resolved path escapes the declared base directory."""

    pass


def _has_parent_segment(path: str) -> bool:
    return ".." in _SEPARATORS.split(path)


def _is_within(path: str, base: str) -> bool:
    if path == base:
        return True
    prefix = base if base.endswith(os.sep) else base + os.sep
    return path.startswith(prefix)


def sanitize_file_path(file_path: str, base_dir: str | None = None) -> str:
    """Sanitize a file path to prevent directory traversal.

    Without ``base_dir`` the normalized path is returned. With ``base_dir``
    the path is resolved against it and the absolute result is returned; an
    absolute input already inside the base is accepted.

    Args:
        file_path: Path supplied by the caller
        base_dir: Optional directory the path must stay within

    Returns:
        Sanitized path

    Raises:
        DirectoryTraversalError: If the path contains ``..`` segments or a NUL
        InvalidPathError: If the path is empty
        OutsideBaseDirectoryError: If the path resolves outside ``base_dir``
    """
    if not file_path:
        raise InvalidPathError("Path cannot be empty")

    if "\x00" in file_path:
        raise DirectoryTraversalError(
            f"Invalid file path: {file_path!r}. Path contains null byte."
        )

    normalized = os.path.normpath(file_path)

    if base_dir:
        absolute_base = os.path.abspath(base_dir)
        absolute_path = os.path.abspath(os.path.join(absolute_base, normalized))
        if not _is_within(absolute_path, absolute_base):
            raise OutsideBaseDirectoryError(
                f"Invalid file path: {file_path!r}. Path is outside base directory."
            )

    if _has_parent_segment(file_path) or _has_parent_segment(normalized):
        raise DirectoryTraversalError(
            f"Invalid file path: {file_path!r}. Directory traversal detected."
        )

    if base_dir:
        return absolute_path
    return normalized
