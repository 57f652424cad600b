"""The @flaky_test decorator."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from flaky_harness.expand import expand


def flaky_test(*args: Any, **kwargs: Any) -> Any:
    """Retry a flaky test until it passes, up to a number of attempts.

    By default a test is attempted up to 3 times::

        @flaky_test
        def test_default(): ...

        @flaky_test(5)
        def test_positional(): ...

        @flaky_test(times=10)
        def test_named(): ...

    `async def` tests run under pytest-asyncio when `asyncio` is selected;
    options for pytest.mark.asyncio are passed through untouched::

        @flaky_test("asyncio", times=5)
        async def test_async(): ...

        @flaky_test(asyncio={"loop_scope": "module"})
        async def test_async_scoped(): ...

        @flaky_test("times = 5, asyncio(loop_scope='module')")
        async def test_async_text(): ...

    The test passes as soon as one attempt passes. If every attempt fails,
    the last attempt's exception is raised unchanged, so pytest.raises and
    xfail(raises=...) behave as they would without the decorator.

    An invalid configuration leaves the test unwrapped and makes it error
    at setup with a diagnostic pointing at the declaration.
    """
    if len(args) == 1 and not kwargs and callable(args[0]):
        return expand((), {}, args[0])

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        return expand(args, kwargs, func)

    return decorator
