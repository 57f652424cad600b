"""Failure isolation for a single test attempt.

invoke() and ainvoke() run the original test body once and return an
AttemptResult instead of letting the failure unwind. AttemptResult.reraise()
raises the captured exception object itself, so the test runner sees the
same type, message and traceback an unwrapped test would have produced.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NoReturn

import pytest

# pytest outcomes that end a test without failing it. XFailed subclasses
# Failed, so it has to be matched first.
PASSTHROUGH_OUTCOMES: tuple[type[BaseException], ...] = (
    pytest.skip.Exception,
    pytest.xfail.Exception,
    pytest.exit.Exception,
)

CAPTURED_FAILURES: tuple[type[BaseException], ...] = (
    Exception,
    pytest.fail.Exception,
)


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of one attempt: success when error is None."""

    attempt: int
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def reraise(self) -> NoReturn:
        """Raise the captured failure unchanged.

        Raises:
            RuntimeError: If called on a successful result.
        """
        if self.error is None:
            raise RuntimeError(f"attempt {self.attempt} succeeded; nothing to re-raise")
        raise self.error


def invoke(
    func: Callable[..., Any],
    attempt: int,
    args: Sequence[Any] = (),
    kwargs: Mapping[str, Any] | None = None,
) -> AttemptResult:
    """Call func once and capture a failure as an AttemptResult."""
    try:
        func(*args, **(kwargs or {}))
    except PASSTHROUGH_OUTCOMES:
        raise
    except CAPTURED_FAILURES as exc:
        return AttemptResult(attempt, exc)
    return AttemptResult(attempt)


async def ainvoke(
    func: Callable[..., Awaitable[Any]],
    attempt: int,
    args: Sequence[Any] = (),
    kwargs: Mapping[str, Any] | None = None,
) -> AttemptResult:
    """Await func once and capture a failure as an AttemptResult.

    asyncio.CancelledError is a BaseException and is not captured.
    """
    try:
        await func(*args, **(kwargs or {}))
    except PASSTHROUGH_OUTCOMES:
        raise
    except CAPTURED_FAILURES as exc:
        return AttemptResult(attempt, exc)
    return AttemptResult(attempt)
