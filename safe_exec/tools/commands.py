"""MCP tools that run local commands through the safe executors."""

import logging
import os

from safe_exec.models import CommandResult
from safe_exec.services import (
    get_settings,
    safe_execute,
    safe_npm_install,
    safe_read_file,
)
from safe_exec.utils.validation import SafeCommandError

logger = logging.getLogger(__name__)

# Served by dedicated tools; through run_command they would escape the checks
# those tools apply (npm exec -c runs a shell string, cat ignores base_dir).
DEDICATED_COMMANDS = {"cat": "read_file", "npm": "npm_install"}


def format_result(result: CommandResult) -> str:
    """Render a CommandResult as text for an MCP client."""
    lines = []
    if result.stdout:
        lines.append(result.stdout.rstrip("\n"))
    if result.stderr:
        lines.append("[stderr]")
        lines.append(result.stderr.rstrip("\n"))
    lines.append(f"[exit code: {result.exit_code}]")
    if result.error is not None:
        lines.append(f"[error: {result.error}]")
    return "\n".join(lines)


async def run_command(command: str, args: list[str] | None = None) -> str:
    """Run an allowlisted command with literal arguments.

    Arguments are passed to the process as-is; shell syntax such as ``;``,
    ``|`` or ``$(...)`` has no effect. The command runs in the base directory,
    but its arguments are not confined to it: ``ls /etc`` lists /etc. Use
    read_file for contained reads and npm_install for packages.

    Args:
        command: Command name from the configured allowlist (e.g. "ls").
        args: Arguments for the command (e.g. ["-la", "src"]).

    Returns:
        Command output with stderr and exit code, or an error message.
    """
    dedicated = DEDICATED_COMMANDS.get(os.path.basename(command))
    if dedicated is not None:
        logger.warning("Rejected command %r (use %s)", command, dedicated)
        return f"Error: Command '{command}' is not available here. Use the {dedicated} tool."

    settings = get_settings()
    if command not in settings.allowed_commands:
        allowed = ", ".join(sorted(settings.allowed_commands))
        logger.warning("Rejected command %r (not in allowlist)", command)
        return f"Error: Command '{command}' is not allowed. Allowed: {allowed}"

    try:
        result = await safe_execute(command, args or [], settings.command_options())
    except SafeCommandError as e:
        return f"Error: {e}"
    return format_result(result)


async def read_file(path: str) -> str:
    """Read a file inside the configured base directory.

    Args:
        path: Path relative to the base directory, or absolute inside it.

    Returns:
        File contents, or an error message.
    """
    settings = get_settings()
    try:
        result = await safe_read_file(path, settings.base_dir, settings.command_options())
    except SafeCommandError as e:
        return f"Error: {e}"

    if not result.ok:
        error_msg = result.stderr.strip() or str(result.error)
        return f"Error: Failed to read {path}: {error_msg}"
    return result.stdout


async def npm_install(package: str) -> str:
    """Install an npm package into the configured base directory.

    Args:
        package: npm package name (e.g. "express", "@types/node").

    Returns:
        npm output with exit code, or an error message.
    """
    settings = get_settings()
    try:
        result = await safe_npm_install(package, settings.command_options())
    except SafeCommandError as e:
        return f"Error: {e}"
    return format_result(result)
