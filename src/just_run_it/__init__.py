"""just-run-it - run a program, echo and capture its output.

Usage:
    from just_run_it import run

    result = await run(["echo", "hello"])
    result.stdout  # "hello\n"

Command line:
    just-run-it -- ls -la
"""

__version__ = "0.1.0"

from .colors import Colorizer, resolve_colorizer
from .errors import LaunchError, NonZeroExitError, RunError, SignalTerminationError
from .runtime import Invocation, ProcessRunner, RunResult, RunSpec, pretty_command, run

__all__ = [
    "__version__",
    "Colorizer",
    "Invocation",
    "LaunchError",
    "NonZeroExitError",
    "ProcessRunner",
    "RunError",
    "RunResult",
    "RunSpec",
    "SignalTerminationError",
    "pretty_command",
    "resolve_colorizer",
    "run",
]
