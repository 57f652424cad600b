"""Configuration parser for @flaky_test arguments.

Two surfaces produce the same RetryConfig:

    Python arguments   @flaky_test(5), @flaky_test(times=5, asyncio=True),
                       @flaky_test(asyncio={"loop_scope": "module"})
    Option text        @flaky_test("times = 5, asyncio(loop_scope='module')")

Option text grammar:

    options := [ option ( "," option )* [ "," ] ]
    option  := INT | "times" "=" INT | "asyncio" [ "(" keyword-literals ")" ]

Both surfaces are first lowered to a flat list of options carrying their
span in a rendered source string, then validated in one place so every
error points at the offending option.
"""

from __future__ import annotations

import ast
import io
import tokenize
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from flaky_harness import settings
from flaky_harness.models import DEFAULT_ATTEMPTS, ExecutionModel, RetryConfig
from flaky_harness.utils.errors import ConfigError, Span

EXPECTED_WITH_ASYNCIO = "expected `<int>`, `times = <int>` or `asyncio`"
EXPECTED_SYNC_ONLY = "expected `<int>` or `times = <int>`"

ASYNCIO_OPTION = "asyncio"
TIMES_OPTION = "times"


@dataclass(frozen=True)
class _Option:
    kind: str
    value: Any
    span: Span


def expected_forms(asyncio_supported: bool) -> str:
    """Return the expected-forms hint attached to every ConfigError."""
    return EXPECTED_WITH_ASYNCIO if asyncio_supported else EXPECTED_SYNC_ONLY


def parse_arguments(
    args: Sequence[Any],
    kwargs: Mapping[str, Any],
    *,
    asyncio_supported: bool | None = None,
) -> RetryConfig:
    """Parse the positional and keyword arguments given to @flaky_test.

    Args:
        args: Positional arguments: an attempt count or option text.
        kwargs: Keyword arguments: `times` and/or `asyncio`.
        asyncio_supported: Override for the asyncio capability flag.
            Defaults to settings.ASYNCIO_SUPPORTED.

    Returns:
        The parsed RetryConfig.

    Raises:
        ConfigError: If the arguments violate the grammar.
    """
    supported = _resolve_support(asyncio_supported)
    options = _options_from_arguments(args, kwargs, supported)
    return _build_config(options, supported)


def parse_options(text: str, *, asyncio_supported: bool | None = None) -> RetryConfig:
    """Parse option text such as "times = 5, asyncio".

    Raises:
        ConfigError: If the text violates the grammar.
    """
    supported = _resolve_support(asyncio_supported)
    options = _options_from_text(text, supported)
    return _build_config(options, supported)


def _resolve_support(asyncio_supported: bool | None) -> bool:
    if asyncio_supported is None:
        return settings.ASYNCIO_SUPPORTED
    return asyncio_supported


def _error(message: str, span: Span | None, supported: bool) -> ConfigError:
    return ConfigError(message, span=span, expected=expected_forms(supported))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Python argument surface
# ---------------------------------------------------------------------------


def _options_from_arguments(
    args: Sequence[Any], kwargs: Mapping[str, Any], supported: bool
) -> list[_Option]:
    rendered: list[tuple[str, str | None, Any]] = [
        (repr(value), None, value) for value in args
    ]
    rendered.extend((f"{key}={value!r}", key, value) for key, value in kwargs.items())
    source = ", ".join(text for text, _, _ in rendered)

    options: list[_Option] = []
    offset = 0
    for text, key, value in rendered:
        span = Span(source, offset, offset + len(text))
        if key is None:
            options.extend(_positional_options(value, span, supported))
        else:
            options.append(_keyword_option(key, value, span, supported))
        offset += len(text) + 2
    return options


def _positional_options(value: Any, span: Span, supported: bool) -> list[_Option]:
    if isinstance(value, str):
        # Spans inside the text only line up with the rendered repr when
        # repr() did not escape anything.
        if repr(value)[1:-1] != value:
            try:
                parsed = _options_from_text(value, supported)
            except ConfigError as exc:
                raise _error(exc.message, span, supported) from None
            return [_Option(o.kind, o.value, span) for o in parsed]
        inner = span.start + 1
        try:
            parsed = _options_from_text(value, supported)
        except ConfigError as exc:
            raise exc.shifted(span.source, inner) from None
        return [
            _Option(
                o.kind,
                o.value,
                Span(span.source, o.span.start + inner, o.span.end + inner),
            )
            for o in parsed
        ]
    if isinstance(value, bool):
        raise _error(f"attempt count must be an integer, got {value!r}", span, supported)
    if _is_int(value):
        return [_Option("count", value, span)]
    raise _error(
        f"unexpected argument of type {type(value).__name__}", span, supported
    )


def _keyword_option(key: str, value: Any, span: Span, supported: bool) -> _Option:
    if key == TIMES_OPTION:
        if not _is_int(value):
            raise _error(
                f"`times` must be an integer, got {value!r}", span, supported
            )
        return _Option(TIMES_OPTION, value, span)
    if key == ASYNCIO_OPTION:
        if value is True:
            return _Option(ASYNCIO_OPTION, None, span)
        if isinstance(value, Mapping):
            if not all(isinstance(name, str) for name in value):
                raise _error("`asyncio` option names must be strings", span, supported)
            return _Option(ASYNCIO_OPTION, dict(value), span)
        raise _error(
            f"`asyncio` must be True or a mapping of options, got {value!r}",
            span,
            supported,
        )
    raise _error(f"unrecognized option `{key}`", span, supported)


# ---------------------------------------------------------------------------
# Option text surface
# ---------------------------------------------------------------------------


def _options_from_text(text: str, supported: bool) -> list[_Option]:
    source = text.replace("\r", " ").replace("\n", " ")
    options: list[_Option] = []
    for start, end in _split_top_level(source, supported):
        options.append(_parse_option(source, start, end, supported))
    return options


def _split_top_level(source: str, supported: bool) -> list[tuple[int, int]]:
    """Split source on commas outside brackets; return trimmed (start, end) pairs."""
    body = source.lstrip()
    lead = len(source) - len(body)
    whole = Span(source, lead, len(source.rstrip()))

    commas: list[int] = []
    depth = 0
    try:
        for tok in tokenize.generate_tokens(io.StringIO(body).readline):
            if tok.type == tokenize.ERRORTOKEN and not tok.string.isspace():
                raise _error("unparseable retry configuration", whole, supported)
            if tok.type != tokenize.OP:
                continue
            if tok.string in "([{":
                depth += 1
            elif tok.string in ")]}":
                depth -= 1
                if depth < 0:
                    col = lead + tok.start[1]
                    raise _error("unbalanced `)`", Span(source, col, col + 1), supported)
            elif tok.string == "," and depth == 0:
                commas.append(lead + tok.start[1])
    except (tokenize.TokenError, SyntaxError):
        raise _error("unparseable retry configuration", whole, supported) from None

    bounds = [lead - 1, *commas, len(source)]
    pieces: list[tuple[int, int]] = []
    for index, (left, right) in enumerate(zip(bounds, bounds[1:])):
        raw = source[left + 1 : right]
        if not raw.strip():
            trailing = index == len(bounds) - 2
            if trailing and (commas or not body):
                continue
            at = max(left + 1, 0)
            raise _error("empty option", Span(source, at, at + 1), supported)
        start = left + 1 + (len(raw) - len(raw.lstrip()))
        end = right - (len(raw) - len(raw.rstrip()))
        pieces.append((start, end))
    return pieces


def _parse_option(source: str, start: int, end: int, supported: bool) -> _Option:
    span = Span(source, start, end)
    piece = source[start:end]
    try:
        call = ast.parse(f"_({piece})", mode="eval").body
    except SyntaxError:
        raise _error("unparseable retry configuration", span, supported) from None

    if not isinstance(call, ast.Call) or len(call.args) + len(call.keywords) != 1:
        raise _error("unparseable retry configuration", span, supported)

    if call.keywords:
        keyword = call.keywords[0]
        if keyword.arg is None:
            raise _error("`**` unpacking is not supported", span, supported)
        if keyword.arg != TIMES_OPTION:
            raise _error(f"unrecognized option `{keyword.arg}`", span, supported)
        value = _literal(keyword.value, span, supported)
        if not _is_int(value):
            raise _error(f"`times` must be an integer, got {value!r}", span, supported)
        return _Option(TIMES_OPTION, value, span)

    node = call.args[0]
    if isinstance(node, ast.Starred):
        raise _error("`*` unpacking is not supported", span, supported)
    if isinstance(node, ast.Name):
        if node.id != ASYNCIO_OPTION:
            raise _error(f"unrecognized option `{node.id}`", span, supported)
        return _Option(ASYNCIO_OPTION, None, span)
    if isinstance(node, ast.Call):
        name = node.func.id if isinstance(node.func, ast.Name) else ast.unparse(node.func)
        if name != ASYNCIO_OPTION:
            raise _error(f"unrecognized option `{name}`", span, supported)
        if node.args:
            raise _error(
                "`asyncio(...)` accepts keyword options only", span, supported
            )
        asyncio_options: dict[str, Any] = {}
        for keyword in node.keywords:
            if keyword.arg is None:
                raise _error("`**` unpacking is not supported", span, supported)
            asyncio_options[keyword.arg] = _literal(keyword.value, span, supported)
        return _Option(ASYNCIO_OPTION, asyncio_options, span)

    value = _literal(node, span, supported)
    if not _is_int(value):
        raise _error(f"attempt count must be an integer, got {value!r}", span, supported)
    return _Option("count", value, span)


def _literal(node: ast.expr, span: Span, supported: bool) -> Any:
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError, MemoryError, RecursionError):
        raise _error(
            f"option value `{ast.unparse(node)}` must be a literal", span, supported
        ) from None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _build_config(options: list[_Option], supported: bool) -> RetryConfig:
    attempts: int | None = None
    asyncio_seen = False
    asyncio_options: dict[str, Any] | None = None

    for option in options:
        if option.kind == ASYNCIO_OPTION:
            if asyncio_seen:
                raise _error("`asyncio` given more than once", option.span, supported)
            if not supported:
                raise _error(
                    "`asyncio` requires pytest-asyncio to be installed and enabled",
                    option.span,
                    supported,
                )
            asyncio_seen = True
            asyncio_options = option.value
            continue

        if attempts is not None:
            raise _error("attempt count given more than once", option.span, supported)
        if option.value < 1:
            raise _error(
                f"attempt count must be a positive integer, got {option.value}",
                option.span,
                supported,
            )
        attempts = option.value

    return RetryConfig(
        attempts=DEFAULT_ATTEMPTS if attempts is None else attempts,
        execution_model=ExecutionModel.ASYNCIO if asyncio_seen else ExecutionModel.SYNC,
        asyncio_options=asyncio_options,
    )
