"""pytest plugin for @flaky_test.

Registered through the pytest11 entry point. It registers the flaky_test
marker, configures harness logging, and reports a test whose @flaky_test
configuration was rejected as a single setup error.
"""

from __future__ import annotations

import pytest

from flaky_harness import settings
from flaky_harness.expand import embedded_error
from flaky_harness.observability.logger import configure_logging
from flaky_harness.synthesis.interface import MARKER_NAME


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        f"{MARKER_NAME}(attempts, execution_model): test is retried by @flaky_test "
        "(added by the decorator, not meant to be applied by hand)",
    )
    configure_logging(settings.SETTINGS)


def pytest_report_header(config: pytest.Config) -> str:
    state = "enabled" if settings.ASYNCIO_SUPPORTED else "disabled"
    return f"flaky_harness: asyncio support {state}"


@pytest.hookimpl(tryfirst=True)
def pytest_runtest_setup(item: pytest.Item) -> None:
    """Fail setup of a test that carries an embedded configuration error."""
    error = embedded_error(getattr(item, "obj", None))
    if error is not None:
        pytest.fail(error.render(), pytrace=False)
