"""Tests for project scaffold: imports, logger, and custom exceptions."""

import io
import json
import logging
from collections.abc import Iterator

import pytest

from flaky_harness.observability.logger import (
    HARNESS_LOGGER,
    AttemptJsonFormatter,
    attempt_fields,
    configure_logging,
)
from flaky_harness.settings import Settings
from flaky_harness.utils.errors import (
    ConfigError,
    DeclarationError,
    FlakyTestConfigWarning,
    FlakyTestError,
    SourceLocation,
    Span,
)


class TestModuleImports:
    """Verify all package modules are importable."""

    def test_top_level_import(self) -> None:
        import flaky_harness

        assert flaky_harness.flaky_test is not None

    def test_subpackage_imports(self) -> None:
        import flaky_harness.observability
        import flaky_harness.plugin
        import flaky_harness.synthesis
        import flaky_harness.utils

        assert flaky_harness.observability is not None
        assert flaky_harness.plugin is not None
        assert flaky_harness.synthesis is not None
        assert flaky_harness.utils is not None


class TestCustomExceptions:
    """Verify custom exception hierarchy and string representations."""

    def test_all_exceptions_inherit_from_flaky_test_error(self) -> None:
        for cls in (ConfigError, DeclarationError):
            assert issubclass(cls, FlakyTestError), (
                f"{cls.__name__} must inherit from FlakyTestError"
            )

    def test_config_warning_is_user_warning(self) -> None:
        assert issubclass(FlakyTestConfigWarning, UserWarning)

    def test_error_str_without_test_name(self) -> None:
        assert str(FlakyTestError("something failed")) == "something failed"

    def test_error_str_with_test_name(self) -> None:
        error = FlakyTestError("something failed", test_name="test_network")
        assert str(error) == "[test=test_network] something failed"

    def test_config_error_includes_expected_and_location(self) -> None:
        error = ConfigError(
            "unrecognized option `foo`",
            expected="expected `<int>`",
            location=SourceLocation("tests/test_x.py", 12),
        )
        assert str(error) == "tests/test_x.py:12: unrecognized option `foo`; expected `<int>`"

    def test_config_error_at_attaches_location(self) -> None:
        error = ConfigError("bad", span=Span("times=0", 0, 7))
        located = error.at(SourceLocation("t.py", 3), test_name="test_a")
        assert located is not error
        assert located.location == SourceLocation("t.py", 3)
        assert located.test_name == "test_a"
        assert located.span == error.span
        assert error.location is None

    def test_render_underlines_span(self) -> None:
        error = ConfigError("bad", span=Span("5, times=0", 3, 10))
        assert error.render().splitlines() == [
            "flaky_test: bad",
            "5, times=0",
            "   ^^^^^^^",
        ]

    def test_shifted_moves_span(self) -> None:
        error = ConfigError("bad", span=Span("times=0", 0, 7))
        shifted = error.shifted("'times=0'", 1)
        assert shifted.span == Span("'times=0'", 1, 8)

    def test_declaration_error_keeps_target(self) -> None:
        error = DeclarationError("not a function", target=42)
        assert error.target == 42

    def test_exceptions_are_catchable_as_base(self) -> None:
        with pytest.raises(FlakyTestError):
            raise ConfigError("test error")


@pytest.fixture
def json_log() -> Iterator[io.StringIO]:
    """Route the harness logger to an in-memory JSON stream for one test."""
    stream = io.StringIO()
    logger = configure_logging(Settings(log_format="json"), stream=stream)
    yield stream
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, AttemptJsonFormatter):
            logger.removeHandler(handler)
    logger.setLevel(logging.INFO)


class TestAttemptJsonLogging:
    """Verify JSON attempt records written in json log mode."""

    def test_output_is_valid_json(self, json_log: io.StringIO) -> None:
        logging.getLogger("flaky_harness.test").info("test message")

        parsed = json.loads(json_log.getvalue().strip())
        assert parsed["severity"] == "INFO"
        assert parsed["logger"] == "flaky_harness.test"
        assert parsed["message"] == "test message"
        assert "flaky_test" not in parsed

    def test_attempt_fields_are_grouped(self, json_log: io.StringIO) -> None:
        logging.getLogger("flaky_harness.test").warning(
            "retrying",
            extra={"test": "test_network", "attempt": 1, "attempts": 3, "error": "boom"},
        )

        parsed = json.loads(json_log.getvalue().strip())
        assert parsed["flaky_test"] == {
            "test": "test_network",
            "attempt": 1,
            "attempts": 3,
            "error": "boom",
            "final": False,
        }

    def test_timestamp_format(self, json_log: io.StringIO) -> None:
        logging.getLogger("flaky_harness.test").warning("check format")

        timestamp = json.loads(json_log.getvalue().strip())["timestamp"]
        assert timestamp.endswith("Z")
        assert "T" in timestamp

    def test_exception_is_formatted(self, json_log: io.StringIO) -> None:
        try:
            raise ValueError("bad value")
        except ValueError:
            logging.getLogger("flaky_harness.test").exception("failed")

        parsed = json.loads(json_log.getvalue().strip())
        assert "ValueError: bad value" in parsed["exception"]

    def test_configure_twice_adds_one_handler(self, json_log: io.StringIO) -> None:
        logger = configure_logging(Settings(log_format="json"), stream=json_log)
        assert sum(isinstance(h.formatter, AttemptJsonFormatter) for h in logger.handlers) == 1


class TestAttemptFields:
    """Verify attempt field extraction from log records."""

    @staticmethod
    def _record(**extra: object) -> logging.LogRecord:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_attempt_zero_is_kept(self) -> None:
        assert attempt_fields(self._record(attempt=0)) == {"attempt": 0}

    def test_last_attempt_is_final(self) -> None:
        fields = attempt_fields(self._record(test="t", attempt=2, attempts=3))
        assert fields["final"] is True

    def test_plain_record_has_no_fields(self) -> None:
        assert attempt_fields(self._record()) == {}


class TestConfigureLogging:
    """Verify level and format settings applied to the harness logger."""

    def test_text_mode_sets_level_only(self) -> None:
        logger = configure_logging(Settings(log_level="WARNING"))
        try:
            assert logger.name == HARNESS_LOGGER
            assert logger.level == logging.WARNING
            assert not any(isinstance(h.formatter, AttemptJsonFormatter) for h in logger.handlers)
        finally:
            logger.setLevel(logging.INFO)
