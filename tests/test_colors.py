"""Colorizer resolution tests.

Test coverage:
- Disabled colors -> identity transforms
- Default colorizer probing order, fallback and caching
- Fallback chains for custom colorizer mappings and objects
- Bound methods keep their instance
- Real rich/click providers when installed
"""

from __future__ import annotations

import pytest

from just_run_it import colors
from just_run_it.colors import PLAIN, Colorizer, get_default_colorizer, resolve_colorizer


def _tag(name: str):
    return lambda text: f"<{name}>{text}</{name}>"


@pytest.fixture
def fake_palette(monkeypatch):
    """Install a single fake color library as the default provider."""
    palette = {"gray": _tag("gray"), "green": _tag("green"), "red": _tag("red")}
    monkeypatch.setattr(colors, "PALETTE_PROVIDERS", [("fake", lambda: palette)])
    return palette


class TestDisabledColors:
    """Test falsy color values."""

    @pytest.mark.parametrize("value", [False, None, 0, ""])
    def test_identity(self, value):
        colorizer = resolve_colorizer(value)

        assert colorizer is PLAIN
        for transform in (colorizer.prompt, colorizer.command, colorizer.stdout, colorizer.stderr):
            assert transform("text") == "text"


class TestDefaultColorizer:
    """Test probing of the process-wide default."""

    def test_true_uses_first_available_provider(self, fake_palette):
        colorizer = resolve_colorizer(True)

        assert colorizer.prompt("> ") == "<gray>> </gray>"
        assert colorizer.command("ls") == "<gray>ls</gray>"
        assert colorizer.stdout("out") == "<green>out</green>"
        assert colorizer.stderr("err") == "<red>err</red>"

    def test_unavailable_providers_are_skipped(self, monkeypatch):
        monkeypatch.setattr(
            colors,
            "PALETTE_PROVIDERS",
            [("missing", lambda: None), ("second", lambda: {"green": _tag("g")})],
        )

        colorizer = get_default_colorizer()

        assert colorizer.stdout("x") == "<g>x</g>"
        # palette without gray/red passes those through
        assert colorizer.prompt("x") == "x"
        assert colorizer.stderr("x") == "x"

    def test_grey_spelling_accepted(self, monkeypatch):
        monkeypatch.setattr(colors, "PALETTE_PROVIDERS", [("p", lambda: {"grey": _tag("grey")})])

        assert get_default_colorizer().command("x") == "<grey>x</grey>"

    def test_no_provider_falls_back_to_identity(self, monkeypatch):
        monkeypatch.setattr(colors, "PALETTE_PROVIDERS", [("missing", lambda: None)])

        colorizer = resolve_colorizer(True)

        assert colorizer is PLAIN

    def test_probed_once_per_process(self, monkeypatch):
        calls = []

        def provider():
            calls.append(1)
            return {"green": _tag("green")}

        monkeypatch.setattr(colors, "PALETTE_PROVIDERS", [("counting", provider)])

        first = get_default_colorizer()
        second = get_default_colorizer()
        resolve_colorizer(True)

        assert first is second
        assert len(calls) == 1

    def test_reset_forces_new_probe(self, monkeypatch):
        calls = []

        def provider():
            calls.append(1)
            return None

        monkeypatch.setattr(colors, "PALETTE_PROVIDERS", [("counting", provider)])

        get_default_colorizer()
        colors.reset_default_colorizer()
        get_default_colorizer()

        assert len(calls) == 2


class TestCustomColorizer:
    """Test fallback chains for user-supplied colorizers."""

    def test_explicit_fields_win(self, fake_palette):
        colorizer = resolve_colorizer(
            {
                "prompt": _tag("p"),
                "command": _tag("c"),
                "stdout": _tag("o"),
                "stderr": _tag("e"),
                "gray": _tag("unused"),
                "green": _tag("unused"),
                "red": _tag("unused"),
            }
        )

        assert colorizer.prompt("x") == "<p>x</p>"
        assert colorizer.command("x") == "<c>x</c>"
        assert colorizer.stdout("x") == "<o>x</o>"
        assert colorizer.stderr("x") == "<e>x</e>"

    def test_prompt_falls_back_to_command(self, fake_palette):
        colorizer = resolve_colorizer({"command": _tag("c")})

        assert colorizer.prompt("x") == "<c>x</c>"
        assert colorizer.command("x") == "<c>x</c>"

    def test_prompt_and_command_fall_back_to_gray_then_grey(self, fake_palette):
        gray = resolve_colorizer({"gray": _tag("gray1"), "grey": _tag("grey1")})
        grey = resolve_colorizer({"grey": _tag("grey1")})

        assert gray.prompt("x") == "<gray1>x</gray1>"
        assert gray.command("x") == "<gray1>x</gray1>"
        assert grey.prompt("x") == "<grey1>x</grey1>"
        assert grey.command("x") == "<grey1>x</grey1>"

    def test_streams_fall_back_to_green_and_red(self, fake_palette):
        colorizer = resolve_colorizer({"green": _tag("g"), "red": _tag("r")})

        assert colorizer.stdout("x") == "<g>x</g>"
        assert colorizer.stderr("x") == "<r>x</r>"

    def test_missing_fields_use_default(self, fake_palette):
        colorizer = resolve_colorizer({"stdout": _tag("o")})

        assert colorizer.stdout("x") == "<o>x</o>"
        assert colorizer.prompt("x") == "<gray>x</gray>"
        assert colorizer.command("x") == "<gray>x</gray>"
        assert colorizer.stderr("x") == "<red>x</red>"

    def test_empty_mapping_uses_default(self, fake_palette):
        colorizer = resolve_colorizer({})

        assert colorizer.stdout("x") == "<green>x</green>"

    def test_non_callable_entries_ignored(self, fake_palette):
        colorizer = resolve_colorizer({"stdout": "bold", "green": None})

        assert colorizer.stdout("x") == "<green>x</green>"

    def test_methods_keep_their_instance(self, fake_palette):
        class Theme:
            def __init__(self, prefix: str) -> None:
                self.prefix = prefix

            def gray(self, text: str) -> str:
                return f"{self.prefix}{text}"

            def red(self, text: str) -> str:
                return f"{self.prefix}!{text}"

        colorizer = resolve_colorizer(Theme("~"))

        assert colorizer.prompt("> ") == "~> "
        assert colorizer.command("ls") == "~ls"
        assert colorizer.stderr("boom") == "~!boom"
        assert colorizer.stdout("ok") == "<green>ok</green>"

    def test_colorizer_instance_used_as_is(self):
        custom = Colorizer(stdout=_tag("o"))

        assert resolve_colorizer(custom) is custom


class TestBundledProviders:
    """Test the real optional color libraries."""

    def test_rich_palette(self):
        pytest.importorskip("rich")

        palette = colors._rich_palette()

        assert palette is not None
        for name in ("gray", "green", "red"):
            rendered = palette[name]("text")
            assert "text" in rendered
            assert rendered.startswith("\x1b[")

    def test_click_palette(self):
        pytest.importorskip("click")

        palette = colors._click_palette()

        assert palette is not None
        assert palette["green"]("text") == "\x1b[32mtext\x1b[0m"
        assert palette["red"]("text") == "\x1b[31mtext\x1b[0m"

    def test_default_uses_installed_library(self):
        pytest.importorskip("rich")
        pytest.importorskip("click")

        colorizer = get_default_colorizer()

        assert colorizer.stdout("ok") == "\x1b[32mok\x1b[0m"
        assert [name for name, _ in colors.PALETTE_PROVIDERS] == ["rich", "click"]
