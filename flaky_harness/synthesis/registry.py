"""Wrapper builder registry keyed by execution model.

Use synthesize() to turn a parsed RetryConfig and a TestDeclaration into
the replacement test function.
"""

from collections.abc import Callable
from typing import Any

from flaky_harness.models import ExecutionModel, RetryConfig, TestDeclaration
from flaky_harness.synthesis.coroutine import AsyncioWrapperBuilder
from flaky_harness.synthesis.interface import WrapperBuilder
from flaky_harness.synthesis.sync import SyncWrapperBuilder
from flaky_harness.utils.errors import ConfigError

WRAPPER_BUILDERS: dict[ExecutionModel, type[WrapperBuilder]] = {
    ExecutionModel.SYNC: SyncWrapperBuilder,
    ExecutionModel.ASYNCIO: AsyncioWrapperBuilder,
}


def get_wrapper_builder(execution_model: ExecutionModel) -> WrapperBuilder:
    """Create the wrapper builder for an execution model.

    Raises:
        ConfigError: If no builder is registered for the model.
    """
    builder_cls = WRAPPER_BUILDERS.get(execution_model)
    if not builder_cls:
        available = ", ".join(sorted(model.value for model in WRAPPER_BUILDERS))
        raise ConfigError(
            f"Unknown execution model: '{execution_model}'. Available: {available}"
        )
    return builder_cls()


def synthesize(config: RetryConfig, declaration: TestDeclaration) -> Callable[..., Any]:
    """Generate the retrying replacement for declaration.

    Raises:
        ConfigError: If the declaration does not fit the execution model.
    """
    builder = get_wrapper_builder(config.execution_model)
    return builder.synthesize(config, declaration)
