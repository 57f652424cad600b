"""Retry wrapper synthesis.

Public API:
    WrapperBuilder         — Abstract base class for wrapper builders.
    SyncWrapperBuilder     — Retries a synchronous test body.
    AsyncioWrapperBuilder  — Retries an `async def` test body under pytest-asyncio.
    get_wrapper_builder    — Factory to create builders by execution model.
    synthesize             — Build the replacement test for a config and declaration.
"""

from flaky_harness.synthesis.coroutine import AsyncioWrapperBuilder
from flaky_harness.synthesis.interface import WrapperBuilder
from flaky_harness.synthesis.registry import get_wrapper_builder, synthesize
from flaky_harness.synthesis.sync import SyncWrapperBuilder

__all__ = [
    "WrapperBuilder",
    "SyncWrapperBuilder",
    "AsyncioWrapperBuilder",
    "get_wrapper_builder",
    "synthesize",
]
