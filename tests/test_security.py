"""Security tests for command injection prevention."""

import shlex
import subprocess
from pathlib import Path

import pytest

from safe_exec import SpawnOptions, escape_shell_arg, safe_execute, safe_spawn

INJECTION_PAYLOADS = [
    "test; ls",
    "test && ls",
    "test || ls",
    "test `ls`",
    "test $(ls)",
    "test | cat /etc/passwd",
    "$HOME",
    "'; echo HACKED; '",
    "line1\nline2",
]


class TestEscapeShellArg:
    """Test last-resort shell escaping."""

    def test_escapes_single_quotes(self) -> None:
        """Embedded single quotes close, escape and reopen the quoting."""
        assert escape_shell_arg("it's") == "'it'\\''s'"

    def test_wraps_in_single_quotes(self) -> None:
        """Plain text is wrapped in single quotes."""
        assert escape_shell_arg("hello world") == "'hello world'"

    def test_special_characters_left_inside_quotes(self) -> None:
        """Metacharacters are not altered, only quoted."""
        assert escape_shell_arg("test; rm -rf /") == "'test; rm -rf /'"

    def test_empty_string(self) -> None:
        """The empty string becomes an empty quoted word."""
        assert escape_shell_arg("") == "''"

    def test_not_idempotent(self) -> None:
        """Escaping twice wraps twice."""
        once = escape_shell_arg("it's")
        assert escape_shell_arg(once) != once

    @pytest.mark.parametrize("value", ["it's", "a'b'c", "'", *INJECTION_PAYLOADS])
    def test_posix_shell_evaluates_to_original(self, value: str) -> None:
        """A POSIX shell reads the escaped form back as the original text."""
        completed = subprocess.run(
            ["sh", "-c", f"printf %s {escape_shell_arg(value)}"],
            capture_output=True,
            text=True,
            check=True,
        )
        assert completed.stdout == value

    @pytest.mark.parametrize("value", INJECTION_PAYLOADS)
    def test_escaped_value_is_single_word(self, value: str) -> None:
        """shlex sees the escaped value as exactly one word."""
        assert shlex.split(f"echo {escape_shell_arg(value)}") == ["echo", value]


class TestArgumentInjection:
    """Metacharacters in arguments must reach the process literally."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", INJECTION_PAYLOADS)
    async def test_execute_echoes_payload_literally(self, payload: str) -> None:
        """safe_execute passes metacharacters through untouched."""
        result = await safe_execute("echo", [payload])

        assert result.exit_code == 0
        assert result.error is None
        assert result.stdout == payload + "\n"

    @pytest.mark.asyncio
    async def test_injected_command_not_run(self) -> None:
        """The whole string is treated as one filename."""
        result = await safe_execute("cat", ["file.txt; echo HACKED"])

        assert result.exit_code != 0
        assert "HACKED" not in result.stdout

    @pytest.mark.asyncio
    async def test_redirection_not_performed(self, tmp_path: Path) -> None:
        """'>' in an argument does not create a file."""
        target = tmp_path / "redirect-test.txt"
        result = await safe_execute("echo", [f"test > {target}"])

        assert f"test > {target}" in result.stdout
        assert not target.exists()

    @pytest.mark.asyncio
    async def test_spawn_echoes_payload_literally(self) -> None:
        """safe_spawn passes metacharacters through untouched."""
        spawned = safe_spawn("echo", ["test; ls"], SpawnOptions())
        result = await spawned.result

        assert result.stdout == "test; ls\n"
        assert result.exit_code == 0
