"""Invocation model and display rendering of argument vectors.

The rendering is meant for humans reading a log or terminal: arguments
with shell metacharacters are single-quoted, arguments with only
whitespace or single quotes are double-quoted. This is a best-effort
display, not shell-safe quoting: a backslash or single quote inside a
single-quoted argument is escaped the way a reader expects, which a POSIX
shell would not accept back.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

__all__ = [
    "Invocation",
    "pretty_command",
]

_HAS_SPACES_RE = re.compile(r"\s")
_HAS_SHELL_CHARS_RE = re.compile(r"[&|;!$\"\\]")
_ESCAPE_RE = re.compile(r"['\\]")


def _single_quoted(arg: str) -> str:
    return "'" + _ESCAPE_RE.sub(lambda m: "\\" + m.group(0), arg) + "'"


def _render_arg(arg: str) -> str:
    if _HAS_SHELL_CHARS_RE.search(arg):
        return _single_quoted(arg)
    if "'" in arg or _HAS_SPACES_RE.search(arg):
        # no escaping inside: display only
        return f'"{arg}"'
    return arg


def pretty_command(argv: Sequence[str]) -> str:
    """Render an argument vector as a single shell-like command string."""
    return " ".join(_render_arg(arg) for arg in argv)


@dataclass(frozen=True)
class Invocation:
    """A program plus its literal argument vector.

    Attributes:
        command: Program name or path (first argv element)
        args: Remaining arguments, in order
        shell_command: Display rendering of the full invocation
    """

    command: str
    args: tuple[str, ...]
    shell_command: str

    @classmethod
    def from_argv(cls, argv: Sequence[str]) -> "Invocation":
        """Build an invocation from a non-empty argument vector.

        Raises:
            TypeError: If argv is a plain string
            ValueError: If argv is empty
        """
        if isinstance(argv, (str, bytes)):
            raise TypeError("argv must be a sequence of arguments, not a string")
        argv = [str(arg) for arg in argv]
        if not argv:
            raise ValueError("argv must contain at least the program name")
        return cls(
            command=argv[0],
            args=tuple(argv[1:]),
            shell_command=pretty_command(argv),
        )

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]
