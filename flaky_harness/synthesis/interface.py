"""Abstract wrapper builder interface.

A WrapperBuilder turns a RetryConfig and a TestDeclaration into the
replacement test function for one execution model. Concrete builders
(sync, asyncio) subclass WrapperBuilder and implement build().
"""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import pytest

from flaky_harness.models import ExecutionModel, RetryConfig, TestDeclaration
from flaky_harness.outcome import AttemptResult

CONFIG_ATTRIBUTE = "__flaky_test__"
MARKER_NAME = "flaky_test"


class WrapperBuilder(ABC):
    """Abstract base class for retry wrapper builders.

    Subclasses must set execution_model and implement build().
    """

    execution_model: ExecutionModel

    def validate(self, config: RetryConfig, declaration: TestDeclaration) -> None:
        """Reject declarations this execution model cannot wrap.

        Raises:
            ConfigError: If the declaration is incompatible.
        """

    @abstractmethod
    def build(
        self, config: RetryConfig, declaration: TestDeclaration
    ) -> Callable[..., Any]:
        """Return the bare retry loop around declaration.function.

        Args:
            config: Parsed retry configuration.
            declaration: The test being wrapped.

        Returns:
            A function running up to config.attempts attempts.
        """

    def marks(self, config: RetryConfig) -> list[pytest.MarkDecorator]:
        """Extra pytest marks the generated test carries."""
        return []

    def synthesize(
        self, config: RetryConfig, declaration: TestDeclaration
    ) -> Callable[..., Any]:
        """Validate, build and dress the wrapper as the original test.

        Only identity attributes are copied from the original. Its __dict__
        may carry state from an earlier expansion of the same function, so
        the wrapper starts from the declaration's markers instead.
        """
        self.validate(config, declaration)
        wrapper = self.build(config, declaration)
        functools.update_wrapper(wrapper, declaration.function, updated=())
        wrapper.pytestmark = list(declaration.markers)  # type: ignore[attr-defined]
        setattr(wrapper, CONFIG_ATTRIBUTE, config)

        flaky_mark = getattr(pytest.mark, MARKER_NAME)(
            attempts=config.attempts,
            execution_model=config.execution_model.value,
        )
        for mark in [*self.marks(config), flaky_mark]:
            store_mark(wrapper, mark)
        return wrapper


def store_mark(func: Callable[..., Any], mark: pytest.MarkDecorator) -> None:
    """Append a mark to func without touching the list it shares with the original.

    MarkDecorator.__call__ refuses to mark functions named "<lambda>", so the
    list is rebuilt directly.
    """
    existing = getattr(func, "pytestmark", [])
    if not isinstance(existing, list):
        existing = [existing]
    func.pytestmark = [*existing, mark.mark]  # type: ignore[attr-defined]


def log_attempt(logger: logging.Logger, name: str, attempt: int, attempts: int) -> None:
    """Emit the per-attempt diagnostic line."""
    logger.info(
        "flaky_test retry %d for %s",
        attempt,
        name,
        extra={"test": name, "attempt": attempt, "attempts": attempts},
    )


def log_failure(
    logger: logging.Logger, name: str, result: AttemptResult, attempts: int
) -> None:
    """Log a failed attempt; the final one is reported as exhausted."""
    error = f"{type(result.error).__name__}: {result.error}"
    extra = {
        "test": name,
        "attempt": result.attempt,
        "attempts": attempts,
        "error": error,
    }
    if result.attempt == attempts - 1:
        logger.error("%s failed on all %d attempts: %s", name, attempts, error, extra=extra)
    else:
        logger.warning(
            "Attempt %d/%d of %s failed, retrying: %s",
            result.attempt + 1,
            attempts,
            name,
            error,
            extra=extra,
        )
