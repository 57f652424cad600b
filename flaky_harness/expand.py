"""Expansion of one @flaky_test declaration.

expand() is a pure function from (arguments, declaration) to the test
function pytest should collect: either the synthesized retry wrapper, or
the original function with the configuration error embedded in it.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from flaky_harness.models import TestDeclaration
from flaky_harness.parser import parse_arguments
from flaky_harness.synthesis import synthesize
from flaky_harness.synthesis.interface import CONFIG_ATTRIBUTE
from flaky_harness.utils.errors import ConfigError, FlakyTestConfigWarning

logger = logging.getLogger(__name__)

ERROR_ATTRIBUTE = "__flaky_test_error__"


def expand(
    args: Sequence[Any], kwargs: Mapping[str, Any], func: Any
) -> Callable[..., Any]:
    """Expand a decorated test function.

    Args:
        args: Positional arguments given to @flaky_test.
        kwargs: Keyword arguments given to @flaky_test.
        func: The decorated function.

    Returns:
        The retrying replacement, or func itself carrying the error when the
        configuration is rejected.

    Raises:
        DeclarationError: If func is not a function.
    """
    declaration = TestDeclaration.from_function(func)
    try:
        if hasattr(func, CONFIG_ATTRIBUTE):
            raise ConfigError("@flaky_test applied more than once")
        config = parse_arguments(args, kwargs)
        return synthesize(config, declaration)
    except ConfigError as exc:
        return embed_diagnostic(declaration, exc)


def embed_diagnostic(declaration: TestDeclaration, error: ConfigError) -> Callable[..., Any]:
    """Attach a located configuration error to the unmodified original function."""
    located = error
    if declaration.location is not None:
        located = error.at(declaration.location, test_name=declaration.name)

    func = declaration.function
    setattr(func, ERROR_ATTRIBUTE, located)
    logger.debug("Rejected @flaky_test configuration for %s: %s", declaration.name, located)

    if declaration.location is not None:
        warnings.warn_explicit(
            located.render(),
            FlakyTestConfigWarning,
            declaration.location.filename,
            declaration.location.lineno,
            module=func.__module__,
        )
    return func


def embedded_error(obj: Any) -> ConfigError | None:
    """Return the configuration error embedded in a test function, if any."""
    return getattr(obj, ERROR_ATTRIBUTE, None)
