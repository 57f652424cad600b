"""Harness configuration from environment variables.

Reads configuration from environment variables:
    FLAKY_TEST_ASYNCIO     auto | off (default auto)
    FLAKY_TEST_LOG_LEVEL   logging level name (default INFO)
    FLAKY_TEST_LOG_FORMAT  text | json (default text)

The asyncio capability is resolved once, when this module is imported,
and is what the configuration parser consults.
"""

from __future__ import annotations

import importlib.util
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

ASYNCIO_MODES = ("auto", "off")
LOG_FORMATS = ("text", "json")


@dataclass(frozen=True)
class Settings:
    """Validated harness settings."""

    asyncio_mode: str = "auto"
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from an environment mapping.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Validated Settings.

        Raises:
            ValueError: If any variable holds an unsupported value.
        """
        env = os.environ if environ is None else environ

        asyncio_mode = env.get("FLAKY_TEST_ASYNCIO", "auto").strip().lower()
        if asyncio_mode not in ASYNCIO_MODES:
            raise ValueError(
                f"Invalid FLAKY_TEST_ASYNCIO: '{asyncio_mode}'. "
                f"Must be one of: {', '.join(ASYNCIO_MODES)}"
            )

        log_level = env.get("FLAKY_TEST_LOG_LEVEL", "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"Invalid FLAKY_TEST_LOG_LEVEL: '{log_level}'")

        log_format = env.get("FLAKY_TEST_LOG_FORMAT", "text").strip().lower()
        if log_format not in LOG_FORMATS:
            raise ValueError(
                f"Invalid FLAKY_TEST_LOG_FORMAT: '{log_format}'. "
                f"Must be one of: {', '.join(LOG_FORMATS)}"
            )

        return cls(
            asyncio_mode=asyncio_mode,
            log_level=log_level,
            log_format=log_format,
        )


def asyncio_available(settings: Settings) -> bool:
    """Whether the asyncio execution model can be selected.

    Requires pytest-asyncio to be installed and FLAKY_TEST_ASYNCIO not
    set to "off". Only the presence of the distribution is checked; it is
    not imported here.
    """
    if settings.asyncio_mode == "off":
        return False
    return importlib.util.find_spec("pytest_asyncio") is not None


SETTINGS = Settings.from_env()
ASYNCIO_SUPPORTED: bool = asyncio_available(SETTINGS)
