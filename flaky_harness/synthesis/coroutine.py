"""Asyncio retry wrapper.

The generated test is itself a coroutine function registered with
pytest-asyncio through pytest.mark.asyncio. Each attempt awaits the
original coroutine; nothing else suspends between attempts.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import pytest

from flaky_harness import settings
from flaky_harness.models import ExecutionModel, RetryConfig, TestDeclaration
from flaky_harness.outcome import ainvoke
from flaky_harness.parser import expected_forms
from flaky_harness.synthesis.interface import WrapperBuilder, log_attempt, log_failure
from flaky_harness.utils.errors import ConfigError

logger = logging.getLogger(__name__)


class AsyncioWrapperBuilder(WrapperBuilder):
    """Builds a coroutine function that retries an `async def` test body."""

    execution_model = ExecutionModel.ASYNCIO

    def validate(self, config: RetryConfig, declaration: TestDeclaration) -> None:
        if not declaration.is_async:
            raise ConfigError(
                "asyncio execution model requires an `async def` test",
                expected=expected_forms(settings.ASYNCIO_SUPPORTED),
            )

    def marks(self, config: RetryConfig) -> list[pytest.MarkDecorator]:
        if config.asyncio_options:
            return [pytest.mark.asyncio(**config.asyncio_options)]
        return [pytest.mark.asyncio]

    def build(
        self, config: RetryConfig, declaration: TestDeclaration
    ) -> Callable[..., Any]:
        body = declaration.function
        name = declaration.name
        attempts = config.attempts

        async def wrapper(*args: Any, **kwargs: Any) -> None:
            for attempt in range(attempts):
                log_attempt(logger, name, attempt, attempts)
                result = await ainvoke(body, attempt, args, kwargs)
                if result.ok:
                    return
                log_failure(logger, name, result, attempts)
                if attempt == attempts - 1:
                    result.reraise()

        return wrapper
