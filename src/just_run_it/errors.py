"""Exception classes for just-run-it.

Every failure of a run carries the invocation it belongs to and whatever
output was captured before the failure, so callers can inspect it
programmatically even though it already streamed to the terminal.
"""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "RunError",
    "LaunchError",
    "NonZeroExitError",
    "SignalTerminationError",
]


class RunError(Exception):
    """Base class for all run failures.

    Attributes:
        message: Human-readable description
        command: The program that was run (first argv element)
        command_args: The remaining argv elements
        shell_command: Display rendering of the whole invocation
        stdout: Captured stdout so far, or None when capture was disabled
        stderr: Captured stderr so far, or None when capture was disabled
        code: Non-zero exit status (NonZeroExitError only)
        signal: Terminating signal name (SignalTerminationError only)
        cause: Lower-level exception this error wraps, if any
    """

    code: int | None = None
    signal: str | None = None

    def __init__(
        self,
        message: str,
        *,
        command: str,
        command_args: Sequence[str] = (),
        shell_command: str = "",
        stdout: str | None = None,
        stderr: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        if cause is not None:
            message = f"{message}\n  caused by: {cause!r}"
        self.message = message
        self.command = command
        self.command_args = tuple(command_args)
        self.shell_command = shell_command
        self.stdout = stdout
        self.stderr = stderr
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class LaunchError(RunError):
    """The program could not be started (not found, not executable, bad stdin)."""
    pass


class NonZeroExitError(RunError):
    """The program ran and exited with a non-zero status."""

    def __init__(self, code: int, **kwargs) -> None:
        self.code = code
        super().__init__(f"Command process exited with error code {code}", **kwargs)


class SignalTerminationError(RunError):
    """The program was terminated by a signal before exiting normally.

    Attributes:
        signal: Signal name, e.g. "SIGTERM"
        signum: Numeric signal value
    """

    def __init__(self, signal: str, signum: int, **kwargs) -> None:
        self.signal = signal
        self.signum = signum
        super().__init__(f"Command process exited due to signal {signal}", **kwargs)
