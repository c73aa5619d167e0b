"""MCP tools for safe_exec."""

from safe_exec.tools.commands import format_result, npm_install, read_file, run_command

__all__ = ["format_result", "npm_install", "read_file", "run_command"]
