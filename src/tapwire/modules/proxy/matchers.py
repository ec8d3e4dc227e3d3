"""Field matchers used by proxy rules.

Every rule field is coerced once, at configuration time, into one of four
variants. Matching then never has to inspect the type of the configured value.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from tapwire.errors import ConfigurationError


@dataclass(frozen=True)
class Exact:
    """Matches a value equal to ``value``."""

    value: Any

    def matches(self, candidate: Any) -> bool:
        return candidate == self.value

    def describe(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class Prefix:
    """Matches strings starting with ``value``."""

    value: str

    def matches(self, candidate: str | None) -> bool:
        return candidate is not None and candidate.startswith(self.value)

    def describe(self) -> str:
        return f"{self.value!r}*"


@dataclass(frozen=True)
class Pattern:
    """Matches when ``regex`` is found anywhere in the candidate."""

    regex: re.Pattern

    def matches(self, candidate: str | bytes | None) -> bool:
        if candidate is None:
            return False
        if isinstance(self.regex.pattern, str) and isinstance(candidate, bytes):
            candidate = candidate.decode("utf-8", errors="replace")
        elif isinstance(self.regex.pattern, bytes) and isinstance(candidate, str):
            candidate = candidate.encode("utf-8")
        return self.regex.search(candidate) is not None

    def describe(self) -> str:
        return f"/{self.regex.pattern!s}/"


@dataclass(frozen=True)
class Span:
    """Matches integers between ``low`` and ``high``, both inclusive."""

    low: int
    high: int

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ConfigurationError(f"empty range: {self.low}..{self.high}")

    def matches(self, candidate: int | None) -> bool:
        return candidate is not None and self.low <= candidate <= self.high

    def describe(self) -> str:
        return f"{self.low}..{self.high}"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def compile_pattern(value: str | bytes | re.Pattern, field: str) -> Pattern:
    """Compile ``value`` into a :class:`Pattern`."""
    if isinstance(value, re.Pattern):
        return Pattern(value)
    try:
        return Pattern(re.compile(value))
    except (re.error, TypeError) as exc:
        raise ConfigurationError(f"{field}: invalid pattern {value!r}: {exc}") from exc


def to_span(value: range | Sequence[int], field: str) -> Span:
    """Turn a ``range`` (stop exclusive) or a ``(low, high)`` pair (inclusive) into a span."""
    if isinstance(value, range):
        if value.step != 1:
            raise ConfigurationError(f"{field}: ranges must have a step of 1, got {value!r}")
        if len(value) == 0:
            raise ConfigurationError(f"{field}: empty range {value!r}")
        return Span(value.start, value.stop - 1)

    if len(value) != 2 or not all(_is_int(bound) for bound in value):
        raise ConfigurationError(f"{field}: expected a (low, high) pair of integers, got {value!r}")
    low, high = value
    if low > high:
        raise ConfigurationError(f"{field}: empty range {low}..{high}")
    return Span(low, high)


def text_matcher(value: Any, field: str, *, prefix: bool = False) -> Exact | Prefix | Pattern:
    """Coerce a host, path or query field: a literal string or a regex."""
    if isinstance(value, re.Pattern):
        return Pattern(value)
    if isinstance(value, str):
        return Prefix(value) if prefix else Exact(value)
    raise ConfigurationError(f"{field}: expected a string or compiled pattern, got {value!r}")


def number_matcher(value: Any, field: str) -> Exact | Span:
    """Coerce a port or status field: an integer or an inclusive range."""
    if _is_int(value):
        return Exact(value)
    if isinstance(value, (range, tuple, list)):
        return to_span(value, field)
    raise ConfigurationError(f"{field}: expected an integer or a range, got {value!r}")


def literal_matcher(value: Any, field: str) -> Exact:
    """Coerce a field that only accepts a plain string."""
    if not isinstance(value, str):
        raise ConfigurationError(f"{field}: expected a string, got {value!r}")
    return Exact(value)


def body_matcher(value: Any, field: str) -> Pattern:
    """Coerce a body pattern; plain strings are compiled as regular expressions."""
    if isinstance(value, (str, bytes, re.Pattern)):
        return compile_pattern(value, field)
    raise ConfigurationError(f"{field}: expected a string or compiled pattern, got {value!r}")
