"""Validated wrappers over safe_execute for common tasks."""

from safe_exec.models import CommandResult, SafeCommandOptions
from safe_exec.services.executors import safe_execute
from safe_exec.utils.paths import sanitize_file_path
from safe_exec.utils.validation import InvalidPackageNameError, is_valid_package_name


async def safe_npm_install(
    package_name: str,
    options: SafeCommandOptions | None = None,
) -> CommandResult:
    """Install an npm package after validating its name.

    Raises:
        InvalidPackageNameError: If the name is not a valid npm identifier
    """
    # A leading hyphen would be parsed by npm as an option.
    if not is_valid_package_name(package_name) or package_name.startswith("-"):
        raise InvalidPackageNameError(f"Invalid package name: {package_name!r}")
    return await safe_execute("npm", ["install", package_name], options)


async def safe_read_file(
    filename: str,
    base_dir: str | None = None,
    options: SafeCommandOptions | None = None,
) -> CommandResult:
    """Read a file with ``cat`` after constraining it to ``base_dir``.

    Raises:
        DirectoryTraversalError: If the path escapes via ``..`` or ``base_dir``
    """
    safe_path = sanitize_file_path(filename, base_dir)
    return await safe_execute("cat", ["--", safe_path], options)
