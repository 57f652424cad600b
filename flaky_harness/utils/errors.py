"""Custom exception hierarchy for the retry harness.

All exceptions inherit from FlakyTestError, enabling targeted handling
at the decorator boundary while preserving the offending context.
Attempt failures raised by test bodies are never wrapped in these types.
"""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class SourceLocation:
    """File and line of the decorated test declaration."""

    filename: str
    lineno: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.lineno}"


@dataclass(frozen=True)
class Span:
    """Character range of an offending option inside its source text."""

    source: str
    start: int
    end: int

    def underline(self) -> str:
        """Return the source text followed by a caret line under the span."""
        width = max(self.end - self.start, 1)
        return f"{self.source}\n{' ' * self.start}{'^' * width}"


class FlakyTestError(Exception):
    """Base exception for all retry harness errors."""

    def __init__(self, message: str, test_name: str | None = None) -> None:
        self.message = message
        self.test_name = test_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.test_name:
            return f"[test={self.test_name}] {self.message}"
        return self.message


class ConfigError(FlakyTestError):
    """Raised when a retry configuration is malformed or contradictory."""

    def __init__(
        self,
        message: str,
        span: Span | None = None,
        expected: str | None = None,
        location: SourceLocation | None = None,
        test_name: str | None = None,
    ) -> None:
        self.span = span
        self.expected = expected
        self.location = location
        super().__init__(message, test_name)

    def __str__(self) -> str:
        text = super().__str__()
        if self.expected:
            text = f"{text}; {self.expected}"
        if self.location:
            text = f"{self.location}: {text}"
        return text

    def at(self, location: SourceLocation, test_name: str | None = None) -> ConfigError:
        """Return a copy of this error attached to a declaration."""
        return ConfigError(
            self.message,
            span=self.span,
            expected=self.expected,
            location=location,
            test_name=test_name or self.test_name,
        )

    def render(self) -> str:
        """Format the error as a multi-line diagnostic."""
        lines = [f"flaky_test: {self}"]
        if self.span is not None:
            lines.append(self.span.underline())
        return "\n".join(lines)

    def shifted(self, source: str, offset: int) -> ConfigError:
        """Re-anchor the span into a larger source text starting at offset."""
        if self.span is None:
            return self
        span = replace(
            self.span,
            source=source,
            start=self.span.start + offset,
            end=self.span.end + offset,
        )
        return ConfigError(
            self.message,
            span=span,
            expected=self.expected,
            location=self.location,
            test_name=self.test_name,
        )


class DeclarationError(FlakyTestError):
    """Raised when @flaky_test is applied to something that is not a function."""

    def __init__(self, message: str, target: object = None) -> None:
        self.target = target
        super().__init__(message)


class FlakyTestConfigWarning(UserWarning):
    """Issued at the declaration's source location for a rejected configuration."""
