"""Console log formatters with UTC timestamps and ANSI colors."""

import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

RESET = "\033[0m"
DIM = "\033[2m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
MAGENTA = "\033[95m"
CYAN = "\033[96m"
WHITE = "\033[37m"
CRITICAL = "\033[41m\033[37m\033[1m"

LEVEL_COLORS = {
    "DEBUG": "\033[90m",
    "INFO": GREEN,
    "WARNING": YELLOW,
    "ERROR": RED,
    "CRITICAL": CRITICAL,
}

# Longest prefix wins; anything else under the package is white.
COMPONENT_COLORS = {
    "safe_exec.services": MAGENTA,
    "safe_exec.middleware": "\033[33m",
    "safe_exec.server": CYAN,
    "safe_exec.tools": BLUE,
    "safe_exec.config": "\033[32m",
}

UTC = ZoneInfo("UTC")

# (pattern, color) pairs applied to the rendered message.
_HIGHLIGHTS = [
    (re.compile(r"\d+(?:\.\d+)?ms"), YELLOW),
    (re.compile(r"exit_code=(?:-?\d+|None)"), MAGENTA),
    (re.compile(r"pid=\d+"), CYAN),
]

# Leading marker per keyword, checked in order.
_MARKERS = [
    (("starting", "ready"), f"{GREEN}>>>{RESET} "),
    (("shutting down", "shutdown"), f"{RED}<<<{RESET} "),
    (("error", "failed", "timed out"), f"{RED}!!{RESET}  "),
    (("warning", "slow", "rejected"), f"{YELLOW}!{RESET}   "),
    (("completed", "exited"), f"{GREEN}OK{RESET}  "),
    (("spawning",), f"{CYAN}+{RESET}   "),
    (("terminating",), f"{YELLOW}-{RESET}   "),
]


class ColorfulFormatter(logging.Formatter):
    """Single-line formatter: ``time | LEVEL | component | message``."""

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def _paint(self, text: str, color: str) -> str:
        return f"{color}{text}{RESET}" if self.use_colors else text

    @staticmethod
    def _component_color(name: str) -> str:
        matches = [prefix for prefix in COMPONENT_COLORS if name.startswith(prefix)]
        if not matches:
            return WHITE
        return COMPONENT_COLORS[max(matches, key=len)]

    def format(self, record: logging.LogRecord) -> str:
        """Render the record, appending the traceback when there is one."""
        created = datetime.fromtimestamp(record.created, tz=UTC)
        timestamp = f"{created:%H:%M:%S}.{int(record.msecs):03d} {created:%m/%d}"
        component = record.name.removeprefix("safe_exec.")
        sep = self._paint("|", DIM)

        parts = [
            self._paint(timestamp, DIM),
            self._paint(f"{record.levelname:<8}", LEVEL_COLORS.get(record.levelname, WHITE)),
            self._paint(f"{component:<20}", self._component_color(record.name)),
            self._highlight(record.getMessage()),
        ]
        line = f" {sep} ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line

    def _highlight(self, message: str) -> str:
        """Color durations, exit codes and pids inside the message."""
        if not self.use_colors:
            return message
        for pattern, color in _HIGHLIGHTS:
            message = pattern.sub(lambda m, c=color: f"{c}{m.group(0)}{RESET}", message)
        return message


class MCPRequestFormatter(ColorfulFormatter):
    """ColorfulFormatter with a leading marker for lifecycle and process events."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        if not self.use_colors:
            return line

        message = record.getMessage().lower()
        for keywords, marker in _MARKERS:
            if any(word in message for word in keywords):
                return marker + line
        return "    " + line
