"""Settings tests.

Test JRI_* environment variable parsing and caching.
"""

from __future__ import annotations

import os
from unittest import mock

from just_run_it.config import Settings, get_settings, load_settings, reload_settings

JRI_VARS = (
    "JRI_QUIET",
    "JRI_COLOR",
    "JRI_ENCODING",
    "JRI_PROPAGATE_SIGNALS",
    "JRI_LOG_DEBUG",
)


def _clean_env() -> dict[str, str]:
    return {k: v for k, v in os.environ.items() if k not in JRI_VARS}


class TestDefaults:
    """Test defaults when nothing is set."""

    def test_unset_means_defaults(self):
        with mock.patch.dict(os.environ, _clean_env(), clear=True):
            settings = load_settings()

        assert settings.quiet is False
        assert settings.color is True
        assert settings.encoding == "utf-8"
        assert settings.propagate_signals is True
        assert settings.log_debug is False
        assert settings.log_file is None

    def test_dataclass_defaults_match(self):
        assert Settings() == Settings(
            quiet=False,
            color=True,
            encoding="utf-8",
            propagate_signals=True,
            log_debug=False,
            log_file=None,
        )


class TestParseBool:
    """Test boolean variables."""

    def test_true_values(self):
        for value in ("true", "1", "yes", "on", "TRUE", "Yes"):
            with mock.patch.dict(os.environ, {"JRI_QUIET": value}, clear=False):
                assert load_settings().quiet is True

    def test_false_values(self):
        for value in ("false", "0", "no", "off", ""):
            with mock.patch.dict(os.environ, {"JRI_COLOR": value}, clear=False):
                assert load_settings().color is False

    def test_propagate_signals(self):
        with mock.patch.dict(os.environ, {"JRI_PROPAGATE_SIGNALS": "0"}, clear=False):
            assert load_settings().propagate_signals is False


class TestEncoding:
    """Test JRI_ENCODING."""

    def test_known_encoding_normalized(self):
        with mock.patch.dict(os.environ, {"JRI_ENCODING": " Latin1 "}, clear=False):
            assert load_settings().encoding == "iso8859-1"

    def test_unknown_encoding_falls_back(self):
        with mock.patch.dict(os.environ, {"JRI_ENCODING": "no-such-codec"}, clear=False):
            assert load_settings().encoding == "utf-8"

    def test_blank_encoding_falls_back(self):
        with mock.patch.dict(os.environ, {"JRI_ENCODING": "  "}, clear=False):
            assert load_settings().encoding == "utf-8"


class TestLogDebug:
    """Test JRI_LOG_DEBUG."""

    def test_log_file_generated(self):
        with mock.patch.dict(os.environ, {"JRI_LOG_DEBUG": "1"}, clear=False):
            settings = load_settings()

        assert settings.log_debug is True
        assert settings.log_file is not None
        assert "just-run-it" in settings.log_file
        assert settings.log_file.endswith(".log")


class TestGlobalSettings:
    """Test the cached instance."""

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_reload_settings(self):
        with mock.patch.dict(os.environ, {"JRI_QUIET": "yes"}, clear=False):
            settings = reload_settings()
            assert settings.quiet is True
            assert get_settings() is settings

        reload_settings()

    def test_repr(self):
        assert repr(Settings()).startswith("Settings(quiet=False, color=True")
