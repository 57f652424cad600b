"""Retry configuration and test declaration data models."""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flaky_harness.utils.errors import DeclarationError, SourceLocation

DEFAULT_ATTEMPTS = 3


class ExecutionModel(Enum):
    """How the generated test runs its attempts."""

    SYNC = "sync"
    ASYNCIO = "asyncio"


@dataclass(frozen=True)
class RetryConfig:
    """Parsed retry configuration for one decorated test.

    asyncio_options holds the keyword arguments forwarded untouched to
    pytest.mark.asyncio; it is None when none were given.
    """

    attempts: int = DEFAULT_ATTEMPTS
    execution_model: ExecutionModel = ExecutionModel.SYNC
    asyncio_options: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {self.attempts}")
        if self.asyncio_options is not None and self.execution_model is not ExecutionModel.ASYNCIO:
            raise ValueError("asyncio_options require the asyncio execution model")


@dataclass
class TestDeclaration:
    """The test function being expanded, with the markers it carries."""

    __test__ = False

    name: str
    function: Callable[..., Any]
    markers: list[Any] = field(default_factory=list)
    is_async: bool = False
    location: SourceLocation | None = None

    @classmethod
    def from_function(cls, func: Any) -> TestDeclaration:
        """Describe a plain or coroutine function.

        Raises:
            DeclarationError: If func is not a function.
        """
        if not inspect.isfunction(func):
            raise DeclarationError(
                f"@flaky_test can only decorate functions, got {type(func).__name__}",
                target=func,
            )
        code = func.__code__
        return cls(
            name=func.__name__,
            function=func,
            markers=_marks_of(func),
            is_async=inspect.iscoroutinefunction(func),
            location=SourceLocation(code.co_filename, code.co_firstlineno),
        )


def _marks_of(func: Any) -> list[Any]:
    marks = getattr(func, "pytestmark", [])
    if not isinstance(marks, list):
        marks = [marks]
    return list(marks)
