"""Runtime module for running a program and teeing its output.

This module provides process execution with live echo, capture, structured
failures and signal propagation.
"""

from __future__ import annotations

from .invocation import Invocation, pretty_command
from .process_runner import ProcessRunner, RunResult, RunSpec, run
from .tee import StreamTee

__all__ = [
    "Invocation",
    "ProcessRunner",
    "RunResult",
    "RunSpec",
    "StreamTee",
    "pretty_command",
    "run",
]
