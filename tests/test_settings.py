"""Tests for environment configuration and the asyncio capability flag."""

from unittest.mock import patch

import pytest

from flaky_harness.settings import Settings, asyncio_available


class TestSettingsFromEnv:
    """Tests for Settings.from_env."""

    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings == Settings(asyncio_mode="auto", log_level="INFO", log_format="text")

    def test_values_are_normalized(self) -> None:
        settings = Settings.from_env(
            {
                "FLAKY_TEST_ASYNCIO": " OFF ",
                "FLAKY_TEST_LOG_LEVEL": "debug",
                "FLAKY_TEST_LOG_FORMAT": "JSON",
            }
        )
        assert settings.asyncio_mode == "off"
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "json"

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLAKY_TEST_LOG_FORMAT", "json")
        assert Settings.from_env().log_format == "json"

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("FLAKY_TEST_ASYNCIO", "trio"),
            ("FLAKY_TEST_LOG_LEVEL", "LOUD"),
            ("FLAKY_TEST_LOG_FORMAT", "xml"),
        ],
    )
    def test_invalid_values_raise(self, name: str, value: str) -> None:
        with pytest.raises(ValueError, match=name):
            Settings.from_env({name: value})


class TestAsyncioAvailable:
    """Tests for the build-time asyncio capability check."""

    def test_off_disables_asyncio(self) -> None:
        assert asyncio_available(Settings(asyncio_mode="off")) is False

    def test_auto_without_pytest_asyncio(self) -> None:
        with patch("flaky_harness.settings.importlib.util.find_spec", return_value=None):
            assert asyncio_available(Settings()) is False

    def test_auto_with_pytest_asyncio(self) -> None:
        with patch("flaky_harness.settings.importlib.util.find_spec", return_value=object()) as find_spec:
            assert asyncio_available(Settings()) is True
        find_spec.assert_called_once_with("pytest_asyncio")
