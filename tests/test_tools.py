"""Tests for the MCP tool functions."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from safe_exec.config import Settings
from safe_exec.models import CommandResult
from safe_exec.services import set_settings
from safe_exec.services.executors import CommandExitError
from safe_exec.tools import format_result, npm_install, read_file, run_command


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Install settings rooted at a temporary directory."""
    value = Settings(base_dir=str(tmp_path), timeout_ms=5000)
    set_settings(value)
    return value


class TestFormatResult:
    def test_stdout_and_exit_code(self) -> None:
        text = format_result(CommandResult(stdout="hello\n", stderr="", exit_code=0))
        assert text == "hello\n[exit code: 0]"

    def test_includes_stderr_and_error(self) -> None:
        result = CommandResult(
            stdout="",
            stderr="boom\n",
            exit_code=2,
            error=CommandExitError("ls", 2),
        )
        text = format_result(result)
        assert "[stderr]\nboom" in text
        assert "[exit code: 2]" in text
        assert "[error: " in text

    def test_streaming_shape_without_exit_code(self) -> None:
        text = format_result(CommandResult(stdout="", stderr="", exit_code=None))
        assert text == "[exit code: None]"


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_runs_allowed_command(self, settings: Settings) -> None:
        output = await run_command("echo", ["hello; rm -rf /"])
        assert output.startswith("hello; rm -rf /")
        assert "[exit code: 0]" in output

    @pytest.mark.asyncio
    async def test_runs_in_base_directory(self, settings: Settings, tmp_path: Path) -> None:
        (tmp_path / "marker.txt").write_text("x")
        output = await run_command("ls")
        assert "marker.txt" in output

    @pytest.mark.asyncio
    async def test_rejects_command_outside_allowlist(self, settings: Settings) -> None:
        output = await run_command("rm", ["-rf", "/"])
        assert output.startswith("Error: Command 'rm' is not allowed")
        assert "echo" in output

    @pytest.mark.asyncio
    async def test_npm_refused_even_when_allowlisted(self, tmp_path: Path) -> None:
        set_settings(Settings(base_dir=str(tmp_path), allowed_commands=["echo", "npm"]))

        output = await run_command("npm", ["exec", "-c", "echo owned > owned.txt"])

        assert output.startswith("Error: ")
        assert "npm_install" in output
        assert not (tmp_path / "owned.txt").exists()

    @pytest.mark.asyncio
    async def test_cat_refused_even_when_allowlisted(self, tmp_path: Path) -> None:
        set_settings(Settings(base_dir=str(tmp_path), allowed_commands=["cat", "/bin/cat"]))

        for command in ("cat", "/bin/cat"):
            output = await run_command(command, ["/etc/passwd"])
            assert output.startswith("Error: ")
            assert "read_file" in output
            assert "root:" not in output

    def test_default_allowlist_excludes_npm_and_cat(self, settings: Settings) -> None:
        assert "npm" not in settings.allowed_commands
        assert "cat" not in settings.allowed_commands

    @pytest.mark.asyncio
    async def test_validation_error_is_returned(self, tmp_path: Path) -> None:
        set_settings(Settings(base_dir=str(tmp_path), allowed_commands=["echo;ls"]))
        output = await run_command("echo;ls")
        assert output.startswith("Error: Invalid command")

    @pytest.mark.asyncio
    async def test_passes_configured_limits(self, settings: Settings) -> None:
        mock_execute = AsyncMock(
            return_value=CommandResult(stdout="ok", stderr="", exit_code=0)
        )
        with patch("safe_exec.tools.commands.safe_execute", mock_execute):
            await run_command("ls", ["-la"])

        command, args, options = mock_execute.call_args[0]
        assert command == "ls"
        assert args == ["-la"]
        assert options.cwd == settings.base_dir
        assert options.timeout == 5000


class TestReadFile:
    @pytest.mark.asyncio
    async def test_reads_file_in_base_directory(
        self, settings: Settings, tmp_path: Path
    ) -> None:
        (tmp_path / "notes.txt").write_text("line one\nline two\n")
        assert await read_file("notes.txt") == "line one\nline two\n"

    @pytest.mark.asyncio
    async def test_missing_file_returns_error(self, settings: Settings) -> None:
        output = await read_file("missing.txt")
        assert output.startswith("Error: Failed to read missing.txt")

    @pytest.mark.asyncio
    async def test_traversal_returns_error(self, settings: Settings) -> None:
        output = await read_file("../../etc/passwd")
        assert output.startswith("Error: ")
        assert "outside base directory" in output

    @pytest.mark.asyncio
    async def test_empty_path_returns_error(self, settings: Settings) -> None:
        output = await read_file("")
        assert output == "Error: Path cannot be empty"

    @pytest.mark.asyncio
    async def test_null_byte_returns_error(self, settings: Settings) -> None:
        output = await read_file("notes.txt\x00.md")
        assert "null byte" in output


class TestNpmInstall:
    @pytest.mark.asyncio
    async def test_invalid_package_returns_error(self, settings: Settings) -> None:
        output = await npm_install("express; rm -rf /")
        assert output.startswith("Error: ")

    @pytest.mark.asyncio
    async def test_installs_through_recipe(self, settings: Settings) -> None:
        mock_recipe = AsyncMock(
            return_value=CommandResult(stdout="added 1 package\n", stderr="", exit_code=0)
        )
        with patch("safe_exec.tools.commands.safe_npm_install", mock_recipe):
            output = await npm_install("@types/node")

        assert mock_recipe.call_args[0][0] == "@types/node"
        assert "added 1 package" in output
        assert "[exit code: 0]" in output
