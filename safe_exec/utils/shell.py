"""Shell quoting for the rare case where a shell string must be built."""


def escape_shell_arg(value: str) -> str:
    """Wrap a value in single quotes for a POSIX shell.

    Each embedded single quote becomes ``'\\''`` (close quote, escaped quote,
    reopen quote). Prefer passing argv lists to the executors instead.

    Args:
        value: Text to quote

    Returns:
        Shell-safe quoted string
    """
    return "'" + value.replace("'", "'\\''") + "'"
