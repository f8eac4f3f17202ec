"""Colorizers for the banner and echoed child output.

A colorizer is four string transforms: ``prompt`` and ``command`` for the
``> cmd`` banner, ``stdout`` and ``stderr`` for echoed output.

The process-wide default is probed lazily from optional formatting
libraries, in order:
    1. rich   (gray/green/red via rich.style.Style)
    2. click  (gray/green/red via click.style)
If none is installed, every transform passes text through unchanged.

Callers may pass their own mapping or object exposing any of ``prompt``,
``command``, ``stdout``, ``stderr``, ``gray``, ``grey``, ``green``, ``red``;
missing transforms fall back to the default colorizer's.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

__all__ = [
    "Colorizer",
    "PLAIN",
    "Palette",
    "PALETTE_PROVIDERS",
    "get_default_colorizer",
    "reset_default_colorizer",
    "resolve_colorizer",
]

logger = logging.getLogger(__name__)

Transform = Callable[[str], str]
Palette = Mapping[str, Transform]


def _identity(text: str) -> str:
    return text


@dataclass(frozen=True)
class Colorizer:
    """Concrete set of transforms used when displaying a run."""

    prompt: Transform = _identity
    command: Transform = _identity
    stdout: Transform = _identity
    stderr: Transform = _identity


PLAIN = Colorizer()


def _rich_palette() -> Palette | None:
    try:
        from rich.color import ColorSystem
        from rich.style import Style
    except ImportError:
        return None

    def painter(color: str) -> Transform:
        style = Style(color=color)
        return lambda text: style.render(text, color_system=ColorSystem.STANDARD)

    return {
        "gray": painter("bright_black"),
        "green": painter("green"),
        "red": painter("red"),
    }


def _click_palette() -> Palette | None:
    try:
        import click
    except ImportError:
        return None

    def painter(color: str) -> Transform:
        return lambda text: click.style(text, fg=color)

    return {
        "gray": painter("bright_black"),
        "green": painter("green"),
        "red": painter("red"),
    }


# Tried in order; first provider returning a palette wins.
PALETTE_PROVIDERS: list[tuple[str, Callable[[], Palette | None]]] = [
    ("rich", _rich_palette),
    ("click", _click_palette),
]


def _lookup(source: Any, name: str) -> Transform | None:
    """Fetch a named transform from a mapping or an object.

    Attribute access yields bound methods, so transforms that need their
    owning instance keep it.
    """
    if isinstance(source, Mapping):
        method = source.get(name)
    else:
        method = getattr(source, name, None)
    return method if callable(method) else None


def _first(source: Any, *names: str) -> Transform | None:
    for name in names:
        method = _lookup(source, name)
        if method is not None:
            return method
    return None


def _colorizer_from_palette(palette: Palette) -> Colorizer:
    gray = _first(palette, "gray", "grey") or _identity
    return Colorizer(
        prompt=gray,
        command=gray,
        stdout=_lookup(palette, "green") or _identity,
        stderr=_lookup(palette, "red") or _identity,
    )


def _probe_default_colorizer() -> Colorizer:
    for name, provider in PALETTE_PROVIDERS:
        palette = provider()
        if palette is not None:
            logger.debug(f"Using {name} for default colors")
            return _colorizer_from_palette(palette)
    logger.debug("No color library available, output will not be colorized")
    return PLAIN


# Process-wide default, probed lazily
_default_colorizer: Colorizer | None = None


def get_default_colorizer() -> Colorizer:
    """Get the process-wide default colorizer, probing on first use."""
    global _default_colorizer
    if _default_colorizer is None:
        _default_colorizer = _probe_default_colorizer()
    return _default_colorizer


def reset_default_colorizer() -> None:
    """Forget the cached default colorizer (used by tests)."""
    global _default_colorizer
    _default_colorizer = None


def resolve_colorizer(color: Any) -> Colorizer:
    """Turn a ``color`` option into a concrete Colorizer.

    Args:
        color: A falsy value (other than a mapping) for no colors, True for
            the default colorizer, or a mapping/object providing some
            named transforms

    Returns:
        Colorizer with all four transforms filled in
    """
    if not color and not isinstance(color, Mapping):
        return PLAIN
    if color is True:
        return get_default_colorizer()
    if isinstance(color, Colorizer):
        return color
    default = get_default_colorizer()
    return Colorizer(
        prompt=_first(color, "prompt", "command", "gray", "grey") or default.prompt,
        command=_first(color, "command", "gray", "grey") or default.command,
        stdout=_first(color, "stdout", "green") or default.stdout,
        stderr=_first(color, "stderr", "red") or default.stderr,
    )
