"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path (development checkout)
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from just_run_it import colors  # noqa: E402
from just_run_it.runtime.process_runner import ProcessRunner  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_default_colorizer():
    """Make every test probe the default colorizer from scratch."""
    colors.reset_default_colorizer()
    yield
    colors.reset_default_colorizer()


@pytest.fixture
def runner() -> ProcessRunner:
    """ProcessRunner with short cleanup timeouts for testing."""
    return ProcessRunner(term_timeout=0.5, kill_timeout=0.3)


@pytest.fixture
def python() -> str:
    """Interpreter used to run small child scripts with exact byte output."""
    return sys.executable
