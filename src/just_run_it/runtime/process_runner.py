"""Process runner: spawn one program, tee its output, settle on exit.

just-run-it runtime module

This module provides:
- Environment merging (extra variables override the current environment)
- A ``> command`` banner and live, colorized echo of the child's output
- Optional in-memory capture of stdout/stderr
- Structured errors for launch failures, non-zero exits and signals
- Re-delivery of SIGINT/SIGTERM that killed the child to this process

Key design points:
- No shell is involved: argv[0] is executed with the literal argv[1:]
- The child stays in our process group, so Ctrl+C at a terminal reaches
  both processes and job control sees the same termination cause
- Output pumps and stdin feeding run concurrently in one anyio task group;
  all accumulation happens on the event loop thread
- The call settles on the child's exit; output still in flight gets a short
  grace period, so a background process holding the pipes cannot stall it
- If the awaiting task is cancelled, the child is terminated (SIGTERM ->
  timeout -> SIGKILL) before the cancellation propagates
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import anyio

from ..colors import resolve_colorizer
from ..errors import LaunchError, NonZeroExitError, RunError, SignalTerminationError
from .invocation import Invocation
from .tee import StreamTee

__all__ = [
    "ProcessRunner",
    "RunResult",
    "RunSpec",
    "run",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

SUCCESSFUL_EXIT_CODE = 0

# Signals that, when they kill the child, are re-delivered to this process
FORWARDED_SIGNALS = frozenset({signal.SIGINT, signal.SIGTERM})

# Default timeouts
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after SIGTERM
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL
DEFAULT_DRAIN_TIMEOUT = 0.5  # seconds to keep reading output after exit

EXIT_POLL_INTERVAL = 0.02  # seconds


@dataclass(frozen=True)
class RunSpec:
    """Specification for a program to run.

    Attributes:
        argv: Program followed by its arguments (must be non-empty)
        env: Extra environment variables merged over os.environ
        capture: Accumulate stdout/stderr into strings
        quiet: Suppress the banner and the echo of child output
        stdin: None to inherit this process's stdin, a file descriptor or
            file object to borrow, or bytes/str to feed through a pipe
        encoding: Encoding used to decode child output (and str stdin)
        propagate_signals: Re-deliver SIGINT/SIGTERM that killed the child
        color: True for default colors, a falsy value for none, or a
            mapping/object of named transforms (see colors.py)
        dry_run: Print the banner but do not start the program
    """

    argv: Sequence[str]
    env: Mapping[str, str] | None = None
    capture: bool = True
    quiet: bool = False
    stdin: Any = None
    encoding: str = "utf-8"
    propagate_signals: bool = True
    color: Any = True
    dry_run: bool = False


@dataclass(frozen=True)
class RunResult:
    """Outcome of a successful run.

    Attributes:
        code: Exit status (always 0)
        stdout: Captured stdout, or None when capture was disabled
        stderr: Captured stderr, or None when capture was disabled
    """

    code: int = SUCCESSFUL_EXIT_CODE
    stdout: str | None = None
    stderr: str | None = None


@dataclass
class ProcessRunner:
    """Runs a single program to completion.

    Example:
        runner = ProcessRunner()
        result = await runner.run(RunSpec(argv=["git", "status"], quiet=True))
        print(result.stdout)

    Attributes:
        term_timeout: Seconds to wait after SIGTERM when cleaning up
        kill_timeout: Seconds to wait after SIGKILL when cleaning up
        drain_timeout: Seconds to keep reading output once the child has
            exited; a background process that inherited the pipes can keep
            them open long after that
    """

    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT
    drain_timeout: float = DEFAULT_DRAIN_TIMEOUT

    async def run(self, spec: RunSpec) -> RunResult | None:
        """Run the program described by ``spec``.

        Returns:
            RunResult on exit code 0, or None for a dry run

        Raises:
            ValueError: If argv is empty
            LookupError: If encoding is not a known codec
            LaunchError: If the program could not be started
            NonZeroExitError: If the program exited with a non-zero code
            SignalTerminationError: If the program was killed by a signal
        """
        invocation = Invocation.from_argv(spec.argv)
        codecs.lookup(spec.encoding)
        env = {**os.environ, **(spec.env or {})}
        colorizer = resolve_colorizer(spec.color)

        if not spec.quiet:
            print(
                colorizer.prompt("> ") + colorizer.command(invocation.shell_command),
                file=sys.stdout,
                flush=True,
            )

        if spec.dry_run:
            logger.debug(f"Dry run, not starting {invocation.command}")
            return None

        stdout_tee = StreamTee(
            "stdout",
            capture=spec.capture,
            quiet=spec.quiet,
            encoding=spec.encoding,
            colorize=colorizer.stdout,
            sink=lambda: sys.stdout,
        )
        stderr_tee = StreamTee(
            "stderr",
            capture=spec.capture,
            quiet=spec.quiet,
            encoding=spec.encoding,
            colorize=colorizer.stderr,
            sink=lambda: sys.stderr,
        )

        def fail(error_cls: type[RunError], *args: Any, **kwargs: Any) -> RunError:
            return error_cls(
                *args,
                command=invocation.command,
                command_args=invocation.args,
                shell_command=invocation.shell_command,
                stdout=stdout_tee.text,
                stderr=stderr_tee.text,
                **kwargs,
            )

        stdin, stdin_bytes = self._stdin_source(spec.stdin, spec.encoding)
        output = asyncio.subprocess.PIPE if stdout_tee.active else asyncio.subprocess.DEVNULL

        try:
            if getattr(stdin, "closed", False):
                raise ValueError("stdin source is closed")
            process = await asyncio.create_subprocess_exec(
                invocation.command,
                *invocation.args,
                stdin=stdin,
                stdout=output,
                stderr=output,
                env=env,
            )
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to launch {invocation.command}: {e}")
            raise fail(
                LaunchError,
                f"Failed to launch {invocation.command!r}",
                cause=e,
            ) from e

        logger.debug(f"Started subprocess pid={process.pid} argv={invocation.command}")

        try:
            async with anyio.create_task_group() as tg:
                if stdin_bytes is not None:
                    tg.start_soon(self._feed_stdin, process, stdin_bytes)
                tg.start_soon(stdout_tee.drain, process.stdout)
                tg.start_soon(stderr_tee.drain, process.stderr)
                returncode = await self._wait_for_exit(process)
                # Pumps still running after the grace period are cancelled
                tg.cancel_scope.deadline = anyio.current_time() + self.drain_timeout
        except Exception as e:
            error = _sole_exception(e)
            if error is e:
                raise
            raise error from None
        finally:
            if process.returncode is None:
                # Cleanup must finish even when the caller is cancelled
                with anyio.CancelScope(shield=True):
                    await self._terminate_process(process)

        logger.debug(
            f"Subprocess completed pid={process.pid} returncode={returncode}"
        )

        if returncode == SUCCESSFUL_EXIT_CODE:
            return RunResult(
                code=returncode,
                stdout=stdout_tee.text,
                stderr=stderr_tee.text,
            )

        if returncode > 0:
            raise fail(NonZeroExitError, returncode)

        # POSIX: negative return code means killed by signal -returncode
        signum = -returncode
        try:
            signal_name = signal.Signals(signum).name
        except ValueError:
            signal_name = f"SIG{signum}"

        if spec.propagate_signals and signum in FORWARDED_SIGNALS:
            logger.debug(f"Re-delivering {signal_name} to pid={os.getpid()}")
            os.kill(os.getpid(), signum)

        raise fail(SignalTerminationError, signal_name, signum)

    async def _wait_for_exit(self, process: asyncio.subprocess.Process) -> int:
        """Wait for the child itself to exit and return its return code.

        Process.wait() may not return until the output pipes are closed as
        well, so the return code recorded by the child watcher is polled.
        """
        while process.returncode is None:
            await anyio.sleep(EXIT_POLL_INTERVAL)
        return process.returncode

    def _stdin_source(self, stdin: Any, encoding: str) -> tuple[Any, bytes | None]:
        """Split a stdin option into a spawn argument and optional fixed input.

        Returns:
            (stdin argument for the spawn call, bytes to write or None)
        """
        if isinstance(stdin, str):
            stdin = stdin.encode(encoding)
        if isinstance(stdin, (bytes, bytearray, memoryview)):
            return asyncio.subprocess.PIPE, bytes(stdin)
        return stdin, None

    async def _feed_stdin(
        self,
        process: asyncio.subprocess.Process,
        data: bytes,
    ) -> None:
        """Write fixed input to the child and close its stdin."""
        if process.stdin is None:
            return
        try:
            process.stdin.write(data)
            await process.stdin.drain()
            process.stdin.close()
            await process.stdin.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            # Child exited or closed stdin before reading everything
            logger.debug(f"stdin closed early by pid={process.pid}")
            process.stdin.close()

    async def _terminate_process(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Terminate the child gracefully, then forcefully if needed.

        Termination strategy:
        1. Send SIGTERM (TerminateProcess on Windows)
        2. Wait up to term_timeout for exit
        3. If still running, send SIGKILL
        4. Wait up to kill_timeout for forced exit

        Args:
            process: The subprocess to terminate
        """
        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                logger.debug(
                    f"Subprocess terminated gracefully pid={pid} "
                    f"returncode={process.returncode}"
                )
                return
            except asyncio.TimeoutError:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            process.kill()
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
                logger.debug(
                    f"Subprocess killed pid={pid} returncode={process.returncode}"
                )
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")


def _sole_exception(error: BaseException) -> BaseException:
    """Unwrap (nested) exception groups holding a single exception."""
    while True:
        exceptions = getattr(error, "exceptions", None)
        if not isinstance(exceptions, tuple) or len(exceptions) != 1:
            return error
        error = exceptions[0]


async def run(argv: Sequence[str], **options: Any) -> RunResult | None:
    """Run a program with the given options.

    This is a convenience wrapper around ``ProcessRunner().run(RunSpec(...))``;
    ``options`` are the RunSpec fields other than argv.

    Example:
        result = await run(["echo", "hello"], quiet=True)
        assert result.stdout == "hello\\n"
    """
    return await ProcessRunner().run(RunSpec(argv=argv, **options))
