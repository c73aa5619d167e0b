"""Local command executors.

Both executors hand the program and its arguments to the OS as a discrete argv
list. No shell is ever interposed, so metacharacters in arguments reach the
child process as literal text.
"""

import asyncio
import codecs
import logging
import os
import signal
import time
from collections.abc import Sequence
from contextlib import suppress
from typing import NamedTuple

from safe_exec.models import (
    DEFAULT_MAX_BUFFER,
    DEFAULT_TIMEOUT_MS,
    CommandResult,
    OutputCallback,
    SafeCommandOptions,
    SpawnOptions,
)
from safe_exec.utils.validation import validate_arguments, validate_command

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 65_536
# Seconds to wait after SIGTERM before escalating to SIGKILL.
_KILL_GRACE_SECONDS = 2.0


class CommandError(RuntimeError):
    """Base class for process-level failures reported in CommandResult.error."""

    def __init__(self, message: str, command: str) -> None:
        super().__init__(message)
        self.command = command


class CommandExitError(CommandError):
    """Process exited with a non-zero status."""

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(
            f"Command failed: {command} exited with code {returncode}", command
        )
        self.returncode = returncode


class CommandTimeoutError(CommandError):
    """Process ran longer than its timeout and was terminated."""

    def __init__(self, command: str, timeout_ms: int) -> None:
        super().__init__(f"Command timed out after {timeout_ms}ms", command)
        self.timeout_ms = timeout_ms


class MaxBufferExceededError(CommandError):
    """Combined output exceeded max_buffer and the process was terminated."""

    def __init__(self, command: str, max_buffer: int) -> None:
        super().__init__(
            f"Command output exceeded max buffer of {max_buffer} bytes", command
        )
        self.max_buffer = max_buffer


class ProcessTerminatedError(CommandError):
    """Process was killed by a signal before it could exit."""

    def __init__(self, command: str, signal_number: int) -> None:
        try:
            signal_name = signal.Signals(signal_number).name
        except ValueError:
            signal_name = str(signal_number)
        super().__init__(f"Command {command} was terminated by {signal_name}", command)
        self.signal_number = signal_number


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _child_env(options: SafeCommandOptions) -> dict[str, str]:
    if options.env is not None:
        return dict(options.env)
    return os.environ.copy()


def _signal_process(process: asyncio.subprocess.Process, sig: int) -> None:
    """Send a signal unless the process has already been reaped."""
    if process.returncode is not None:
        return
    # The process may exit between the check and the signal.
    with suppress(ProcessLookupError):
        process.send_signal(sig)


def _failure_exit_code(returncode: int | None) -> int:
    if returncode is not None and returncode > 0:
        return returncode
    return 1


async def _spawn(
    command: str, argv: list[str], options: SafeCommandOptions
) -> asyncio.subprocess.Process:
    return await asyncio.create_subprocess_exec(
        command,
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=options.cwd,
        env=_child_env(options),
    )


class _OutputCollector:
    """Reads both pipes of a process into buffers bounded by max_buffer."""

    def __init__(self, process: asyncio.subprocess.Process, max_buffer: int) -> None:
        self._process = process
        self._max_buffer = max_buffer
        self.stdout = bytearray()
        self.stderr = bytearray()
        self.overflowed = False
        self._kill_timer: asyncio.TimerHandle | None = None

    @property
    def total(self) -> int:
        return len(self.stdout) + len(self.stderr)

    async def _pump(self, stream: asyncio.StreamReader | None, buffer: bytearray) -> None:
        if stream is None:
            return
        while chunk := await stream.read(_CHUNK_SIZE):
            if self.overflowed:
                # Keep draining so the child never blocks on a full pipe.
                continue
            room = self._max_buffer - self.total
            if len(chunk) > room:
                buffer.extend(chunk[:room])
                self.overflowed = True
                _signal_process(self._process, signal.SIGTERM)
                self._kill_timer = asyncio.get_running_loop().call_later(
                    _KILL_GRACE_SECONDS, _signal_process, self._process, signal.SIGKILL
                )
                continue
            buffer.extend(chunk)

    async def collect(self) -> int:
        try:
            await asyncio.gather(
                self._pump(self._process.stdout, self.stdout),
                self._pump(self._process.stderr, self.stderr),
            )
            return await self._process.wait()
        finally:
            if self._kill_timer is not None:
                self._kill_timer.cancel()


async def _stop_process(
    process: asyncio.subprocess.Process, pending: "asyncio.Future[int]"
) -> int | None:
    """Terminate a process, escalating to SIGKILL, and wait for its output."""
    for sig in (signal.SIGTERM, signal.SIGKILL):
        _signal_process(process, sig)
        try:
            return await asyncio.wait_for(asyncio.shield(pending), _KILL_GRACE_SECONDS)
        except TimeoutError:
            continue
    # A grandchild still holds the pipes open; give up on the remaining output.
    pending.cancel()
    return process.returncode


async def safe_execute(
    command: str,
    args: Sequence[str] = (),
    options: SafeCommandOptions | None = None,
) -> CommandResult:
    """Run a command to completion and collect its output.

    Failures of the command itself (non-zero exit, spawn failure, timeout,
    output over ``max_buffer``) never raise; they are reported through
    ``exit_code`` and ``error`` on the returned result. Only invalid input
    raises, before any process is created.

    Example:
        >>> result = await safe_execute("cat", ["file.txt"])
        >>> result.stdout

    Args:
        command: Executable name or path
        args: Arguments, passed to the process verbatim
        options: cwd, env, timeout (ms) and max_buffer (bytes)

    Returns:
        CommandResult with the captured output

    Raises:
        InvalidCommandError: If the command name contains unsafe characters
        InvalidArgumentTypeError: If any argument is not a string
    """
    validate_command(command)
    argv = validate_arguments(args)
    options = options or SafeCommandOptions()
    timeout_ms = options.timeout or DEFAULT_TIMEOUT_MS
    max_buffer = options.max_buffer or DEFAULT_MAX_BUFFER

    logger.debug("Spawning %s with %d arg(s), timeout=%dms", command, len(argv), timeout_ms)
    start = time.perf_counter()
    try:
        process = await _spawn(command, argv, options)
    except (OSError, ValueError) as e:
        logger.warning("Failed to start %s: %s", command, e)
        return CommandResult(stdout="", stderr="", exit_code=1, error=e)

    collector = _OutputCollector(process, max_buffer)
    pending = asyncio.ensure_future(collector.collect())
    error: CommandError | None = None
    try:
        returncode = await asyncio.wait_for(asyncio.shield(pending), timeout_ms / 1000)
    except TimeoutError:
        logger.warning(
            "Command %s timed out after %dms, terminating pid=%d",
            command,
            timeout_ms,
            process.pid,
        )
        error = CommandTimeoutError(command, timeout_ms)
        returncode = await _stop_process(process, pending)
    except asyncio.CancelledError:
        pending.cancel()
        _signal_process(process, signal.SIGKILL)
        raise

    duration_ms = (time.perf_counter() - start) * 1000
    stdout = _decode(bytes(collector.stdout))
    stderr = _decode(bytes(collector.stderr))

    if error is None and collector.overflowed:
        logger.warning("Command %s exceeded max buffer of %d bytes", command, max_buffer)
        error = MaxBufferExceededError(command, max_buffer)
    elif error is None and returncode is not None and returncode < 0:
        error = ProcessTerminatedError(command, -returncode)
    elif error is None and returncode != 0:
        error = CommandExitError(command, returncode if returncode is not None else 1)

    if error is None:
        logger.debug("Command %s exited exit_code=0 [%.1fms]", command, duration_ms)
        return CommandResult(stdout=stdout, stderr=stderr, exit_code=0)

    exit_code = _failure_exit_code(returncode)
    logger.debug(
        "Command %s failed exit_code=%d [%.1fms]: %s", command, exit_code, duration_ms, error
    )
    return CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code, error=error)


class ProcessHandle:
    """Opaque handle to a process started by :func:`safe_spawn`.

    The OS process is created asynchronously, so ``pid`` is None until it has
    started. Calling :meth:`terminate` before then stops the process as soon
    as it exists.
    """

    def __init__(self, command: str) -> None:
        self.command = command
        self._process: asyncio.subprocess.Process | None = None
        self._terminate_requested = False
        self._task: asyncio.Task[None] | None = None
        self._kill_timer: asyncio.TimerHandle | None = None

    @property
    def pid(self) -> int | None:
        """OS process id, or None if the process has not started."""
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        """Exit status once the process has been reaped."""
        return self._process.returncode if self._process is not None else None

    @property
    def running(self) -> bool:
        """True while the process is alive."""
        return self._process is not None and self._process.returncode is None

    def terminate(self) -> None:
        """Send SIGTERM, then SIGKILL if the process outlives the grace period.

        Safe to call more than once.
        """
        self._terminate_requested = True
        if self._process is not None:
            self._stop()

    def _stop(self) -> None:
        if self._process is None or self._process.returncode is not None:
            return
        logger.debug("Terminating %s pid=%d", self.command, self._process.pid)
        _signal_process(self._process, signal.SIGTERM)
        if self._kill_timer is None:
            self._kill_timer = asyncio.get_running_loop().call_later(
                _KILL_GRACE_SECONDS, self._kill
            )

    def _kill(self) -> None:
        if self._process is not None:
            _signal_process(self._process, signal.SIGKILL)

    def _attach(self, process: asyncio.subprocess.Process) -> None:
        self._process = process
        if self._terminate_requested:
            self._stop()

    def _reaped(self) -> None:
        if self._kill_timer is not None:
            self._kill_timer.cancel()


class SpawnedCommand(NamedTuple):
    """Live process handle plus the future that settles when it finishes."""

    process: ProcessHandle
    result: "asyncio.Future[CommandResult]"


class _StreamRelay:
    """Accumulates one output stream and forwards decoded chunks to a callback."""

    def __init__(self, callback: OutputCallback | None) -> None:
        self._callback = callback
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._parts: list[str] = []

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def _feed(self, data: bytes, final: bool = False) -> None:
        # Incremental decoding keeps multibyte characters split across reads intact.
        text = self._decoder.decode(data, final)
        if not text:
            return
        self._parts.append(text)
        if self._callback is not None:
            self._callback(text)

    def mute(self) -> None:
        self._callback = None

    async def pump(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while chunk := await stream.read(_CHUNK_SIZE):
            self._feed(chunk)
        self._feed(b"", final=True)


def _settle(future: "asyncio.Future[CommandResult]", result: CommandResult) -> None:
    if not future.done():
        future.set_result(result)


async def _run_streaming(
    command: str,
    argv: list[str],
    options: SpawnOptions,
    handle: ProcessHandle,
    future: "asyncio.Future[CommandResult]",
) -> None:
    try:
        process = await _spawn(command, argv, options)
    except (OSError, ValueError) as e:
        logger.warning("Failed to start %s: %s", command, e)
        _settle(future, CommandResult(stdout="", stderr="", exit_code=None, error=e))
        return

    logger.debug("Spawned %s pid=%d", command, process.pid)
    handle._attach(process)
    stdout_relay = _StreamRelay(options.on_stdout)
    stderr_relay = _StreamRelay(options.on_stderr)

    pumps = [
        asyncio.ensure_future(stdout_relay.pump(process.stdout)),
        asyncio.ensure_future(stderr_relay.pump(process.stderr)),
    ]
    try:
        await asyncio.gather(*pumps)
        returncode = await process.wait()
    except asyncio.CancelledError:
        for pump in pumps:
            pump.cancel()
        _signal_process(process, signal.SIGKILL)
        future.cancel()
        raise
    except Exception as e:
        # An output callback raised; the caller sees its exception.
        logger.warning("Output callback for %s failed: %s", command, e)
        for relay, pump in ((stdout_relay, pumps[0]), (stderr_relay, pumps[1])):
            relay.mute()
            pump.cancel()
        _signal_process(process, signal.SIGKILL)
        if not future.done():
            future.set_exception(e)
        with suppress(TimeoutError):
            await asyncio.wait_for(process.wait(), _KILL_GRACE_SECONDS)
        handle._reaped()
        return

    handle._reaped()

    if returncode < 0:
        error: CommandError | None = ProcessTerminatedError(command, -returncode)
        exit_code: int | None = None
    else:
        error = None
        exit_code = returncode
    logger.debug("Command %s pid=%d exited exit_code=%s", command, process.pid, exit_code)
    _settle(
        future,
        CommandResult(
            stdout=stdout_relay.text,
            stderr=stderr_relay.text,
            exit_code=exit_code,
            error=error,
        ),
    )


def _on_timeout(
    handle: ProcessHandle,
    future: "asyncio.Future[CommandResult]",
    timeout_ms: int,
) -> None:
    if future.done():
        return
    logger.warning("Command %s timed out after %dms, terminating", handle.command, timeout_ms)
    handle.terminate()
    future.set_exception(CommandTimeoutError(handle.command, timeout_ms))


def safe_spawn(
    command: str,
    args: Sequence[str] = (),
    options: SpawnOptions | None = None,
) -> SpawnedCommand:
    """Start a command and stream its output as it arrives.

    Returns immediately; must be called with an event loop running. Output
    chunks are passed to ``on_stdout``/``on_stderr`` in arrival order and
    also accumulated into the final result.

    The result future resolves for normal exits and for spawn failures
    (``exit_code`` None, ``error`` set). If ``timeout`` elapses first the
    process is terminated and the future is rejected with
    :class:`CommandTimeoutError`.

    Example:
        >>> spawned = safe_spawn("npm", ["install", "left-pad"], SpawnOptions(on_stdout=print))
        >>> result = await spawned.result

    Args:
        command: Executable name or path
        args: Arguments, passed to the process verbatim
        options: cwd, env, timeout (ms), on_stdout and on_stderr

    Returns:
        SpawnedCommand with the process handle and the result future

    Raises:
        InvalidCommandError: If the command name contains unsafe characters
        InvalidArgumentTypeError: If any argument is not a string
        RuntimeError: If no event loop is running
    """
    validate_command(command)
    argv = validate_arguments(args)
    options = options or SpawnOptions()

    loop = asyncio.get_running_loop()
    future: asyncio.Future[CommandResult] = loop.create_future()
    handle = ProcessHandle(command)

    if options.timeout:
        timer = loop.call_later(
            options.timeout / 1000, _on_timeout, handle, future, options.timeout
        )
        future.add_done_callback(lambda _: timer.cancel())

    logger.debug("Spawning %s with %d arg(s) (streaming)", command, len(argv))
    handle._task = loop.create_task(_run_streaming(command, argv, options, handle, future))
    return SpawnedCommand(process=handle, result=future)
