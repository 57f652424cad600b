"""Retry harness for known-flaky pytest tests.

Public API:
    flaky_test       — Decorator that retries a test up to N attempts.
    RetryConfig      — Parsed retry configuration.
    ExecutionModel   — Sync or asyncio execution of the generated test.
    ConfigError      — Rejected @flaky_test configuration.
    parse_arguments  — Parse decorator arguments into a RetryConfig.
    parse_options    — Parse option text into a RetryConfig.
    expand           — Expand one decorated function.
    synthesize       — Build the retry wrapper for a config and declaration.
"""

from flaky_harness.decorator import flaky_test
from flaky_harness.expand import expand
from flaky_harness.models import ExecutionModel, RetryConfig, TestDeclaration
from flaky_harness.parser import parse_arguments, parse_options
from flaky_harness.synthesis import synthesize
from flaky_harness.utils.errors import (
    ConfigError,
    DeclarationError,
    FlakyTestConfigWarning,
    FlakyTestError,
)

__all__ = [
    "flaky_test",
    "expand",
    "synthesize",
    "parse_arguments",
    "parse_options",
    "RetryConfig",
    "ExecutionModel",
    "TestDeclaration",
    "ConfigError",
    "DeclarationError",
    "FlakyTestError",
    "FlakyTestConfigWarning",
]
