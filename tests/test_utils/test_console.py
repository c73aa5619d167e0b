"""Tests for the console log formatters."""

import logging
import sys

from safe_exec.utils.console import (
    MAGENTA,
    RESET,
    YELLOW,
    ColorfulFormatter,
    MCPRequestFormatter,
)


def _record(name: str, level: int, msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, args, None)


def test_plain_format_strips_package_prefix() -> None:
    formatter = ColorfulFormatter(use_colors=False)
    line = formatter.format(_record("safe_exec.services.executors", logging.INFO, "hi"))

    assert "\033[" not in line
    assert "| INFO     |" in line
    assert "services.executors" in line
    assert "safe_exec.services" not in line
    assert line.endswith("| hi")


def test_colors_highlight_exit_code_and_duration() -> None:
    formatter = ColorfulFormatter(use_colors=True)
    line = formatter.format(
        _record("safe_exec.services", logging.INFO, "ls exited exit_code=%d in %s", 0, "12.5ms")
    )

    assert f"{MAGENTA}exit_code=0{RESET}" in line
    assert f"{YELLOW}12.5ms{RESET}" in line


def test_exception_is_appended() -> None:
    formatter = ColorfulFormatter(use_colors=False)
    try:
        raise ValueError("bad")
    except ValueError:
        record = logging.LogRecord(
            "safe_exec", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
        )

    line = formatter.format(record)
    assert "Traceback" in line
    assert "ValueError: bad" in line


def test_request_formatter_markers() -> None:
    formatter = MCPRequestFormatter(use_colors=True)

    assert ">>>" in formatter.format(_record("safe_exec.server", logging.INFO, "server starting up"))
    assert "<<<" in formatter.format(_record("safe_exec.server", logging.INFO, "shutting down"))
    assert "!!" in formatter.format(_record("safe_exec", logging.ERROR, "ls timed out"))
    assert formatter.format(_record("safe_exec", logging.INFO, "plain")).startswith("    ")


def test_request_formatter_without_colors_has_no_marker() -> None:
    formatter = MCPRequestFormatter(use_colors=False)
    line = formatter.format(_record("safe_exec.server", logging.INFO, "server starting up"))
    assert not line.startswith(">>>")
