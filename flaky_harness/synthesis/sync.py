"""Synchronous retry wrapper.

Runs attempts one after another on the thread the test runner calls the
test on, stopping at the first success and re-raising the last failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from flaky_harness import settings
from flaky_harness.models import ExecutionModel, RetryConfig, TestDeclaration
from flaky_harness.outcome import invoke
from flaky_harness.parser import expected_forms
from flaky_harness.synthesis.interface import WrapperBuilder, log_attempt, log_failure
from flaky_harness.utils.errors import ConfigError

logger = logging.getLogger(__name__)


class SyncWrapperBuilder(WrapperBuilder):
    """Builds a plain function that retries a synchronous test body."""

    execution_model = ExecutionModel.SYNC

    def validate(self, config: RetryConfig, declaration: TestDeclaration) -> None:
        if declaration.is_async:
            raise ConfigError(
                "`async def` test requires the `asyncio` execution model",
                expected=expected_forms(settings.ASYNCIO_SUPPORTED),
            )

    def build(
        self, config: RetryConfig, declaration: TestDeclaration
    ) -> Callable[..., Any]:
        body = declaration.function
        name = declaration.name
        attempts = config.attempts

        def wrapper(*args: Any, **kwargs: Any) -> None:
            for attempt in range(attempts):
                log_attempt(logger, name, attempt, attempts)
                result = invoke(body, attempt, args, kwargs)
                if result.ok:
                    return
                log_failure(logger, name, result, attempts)
                if attempt == attempts - 1:
                    result.reraise()

        return wrapper
