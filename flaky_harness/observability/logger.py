"""Harness logging setup and JSON attempt records.

The retry wrappers log one record per attempt with the fields test,
attempt, attempts and (for failures) error passed via `extra`. With
FLAKY_TEST_LOG_FORMAT=json those records are written as one JSON object
per line, the attempt fields grouped under "flaky_test" so CI log
processors can pick out flaky tests and how close they came to exhausting
their attempts.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

from flaky_harness.settings import Settings

HARNESS_LOGGER = "flaky_harness"

ATTEMPT_FIELDS = ("test", "attempt", "attempts", "error")


class AttemptJsonFormatter(logging.Formatter):
    """Format harness log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            JSON string with timestamp, severity, logger, message and, for
            attempt records, a "flaky_test" object.
        """
        entry: dict[str, object] = {
            "timestamp": _timestamp(record),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        attempt = attempt_fields(record)
        if attempt:
            entry["flaky_test"] = attempt

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def attempt_fields(record: logging.LogRecord) -> dict[str, object]:
    """Collect the attempt fields a retry wrapper attached to record.

    Adds "final" when both attempt (0-based) and attempts are present.
    """
    fields: dict[str, object] = {}
    for key in ATTEMPT_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            fields[key] = value

    attempt = fields.get("attempt")
    attempts = fields.get("attempts")
    if isinstance(attempt, int) and isinstance(attempts, int):
        fields["final"] = attempt == attempts - 1
    return fields


def _timestamp(record: logging.LogRecord) -> str:
    created = datetime.fromtimestamp(record.created, UTC)
    return created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{created.microsecond // 1000:03d}Z"


def configure_logging(settings: Settings, stream: TextIO | None = None) -> logging.Logger:
    """Apply level and format settings to the harness logger.

    The level is set on the flaky_harness logger itself so attempt lines
    reach pytest's log capture regardless of the root logger's level. In
    json mode a single stream handler is attached; repeated calls reuse it.

    Args:
        settings: Harness settings.
        stream: Destination for JSON lines. Defaults to stdout.

    Returns:
        The flaky_harness logger.
    """
    logger = logging.getLogger(HARNESS_LOGGER)
    logger.setLevel(settings.log_level)

    if settings.log_format == "json" and not any(
        isinstance(h.formatter, AttemptJsonFormatter) for h in logger.handlers
    ):
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(AttemptJsonFormatter())
        logger.addHandler(handler)

    return logger
