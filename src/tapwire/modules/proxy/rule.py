"""Proxy rules -- which requests get proxied, which responses count as proxied."""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from tapwire.errors import ConfigurationError

from .matchers import (
    Exact,
    Pattern,
    Prefix,
    Span,
    body_matcher,
    literal_matcher,
    number_matcher,
    text_matcher,
)

RULE_FIELDS = (
    "host",
    "port",
    "request_method",
    "request_path",
    "request_query",
    "response_status",
    "response_body",
)


@dataclass(frozen=True)
class ProxyRule:
    """Optional constraints on requests and responses.

    A field left as ``None`` does not constrain matching, so an empty rule
    matches everything. Use :meth:`build` to coerce plain values.
    """

    host: Exact | Pattern | None = None
    port: Exact | Span | None = None
    request_method: Exact | None = None
    request_path: Prefix | Pattern | None = None
    request_query: Exact | Pattern | None = None
    response_status: Exact | Span | None = None
    response_body: Pattern | None = None

    @classmethod
    def build(
        cls,
        *,
        host: str | re.Pattern | None = None,
        port: int | range | tuple[int, int] | None = None,
        request_method: str | None = None,
        request_path: str | re.Pattern | None = None,
        request_query: str | re.Pattern | None = None,
        response_status: int | range | tuple[int, int] | None = None,
        response_body: str | bytes | re.Pattern | None = None,
    ) -> "ProxyRule":
        """Create a rule from literals, compiled patterns and ranges.

        Raises :class:`ConfigurationError` when a value has the wrong shape
        for its field (for example a pattern for ``port``).
        """
        return cls(
            host=None if host is None else text_matcher(host, "host"),
            port=None if port is None else number_matcher(port, "port"),
            request_method=(
                None
                if request_method is None
                else literal_matcher(request_method, "request_method")
            ),
            request_path=(
                None
                if request_path is None
                else text_matcher(request_path, "request_path", prefix=True)
            ),
            request_query=(
                None if request_query is None else text_matcher(request_query, "request_query")
            ),
            response_status=(
                None
                if response_status is None
                else number_matcher(response_status, "response_status")
            ),
            response_body=(
                None if response_body is None else body_matcher(response_body, "response_body")
            ),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProxyRule":
        """Create a rule from configuration data (for example parsed YAML).

        Strings starting with ``re:`` and ``{"pattern": ...}`` mappings become
        regular expressions, ``{"range": [low, high]}`` an inclusive range.
        """
        unknown = set(data) - set(RULE_FIELDS)
        if unknown:
            raise ConfigurationError(f"unknown rule fields: {', '.join(sorted(unknown))}")
        return cls.build(**{key: _config_value(key, value) for key, value in data.items()})

    def matches_request(self, request: Any, predicate: Callable[[Any], Any] | None = None) -> bool:
        """Return True if ``request`` satisfies every configured request field."""
        if self.host is not None and not self.host.matches(request.host):
            return False
        if self.port is not None and not self.port.matches(request.port):
            return False
        if self.request_method is not None and not self.request_method.matches(request.method):
            return False
        if self.request_path is not None and not self.request_path.matches(request.path):
            return False
        if self.request_query is not None and not self.request_query.matches(request.query_string):
            return False
        if predicate is not None and not predicate(request):
            return False
        return True

    def matches_response(
        self, response: Any, predicate: Callable[[Any], Any] | None = None
    ) -> bool:
        """Return True if ``response`` satisfies every configured response field."""
        if self.response_status is not None and not self.response_status.matches(response.status):
            return False
        if self.response_body is not None and not any(
            self.response_body.matches(chunk) for chunk in response.body
        ):
            return False
        if predicate is not None and not predicate(response):
            return False
        return True

    def describe(self) -> dict[str, str]:
        """Human-readable description of the configured fields."""
        return {
            field.name: getattr(self, field.name).describe()
            for field in fields(self)
            if getattr(self, field.name) is not None
        }

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in RULE_FIELDS)


def _config_value(key: str, value: Any) -> Any:
    if isinstance(value, str) and value.startswith("re:"):
        return _compile(key, value[3:])
    if isinstance(value, Mapping):
        if set(value) == {"pattern"}:
            return _compile(key, value["pattern"])
        if set(value) == {"range"}:
            bounds = value["range"]
            if not isinstance(bounds, (list, tuple)):
                raise ConfigurationError(f"{key}: range must be a [low, high] list, got {bounds!r}")
            return tuple(bounds)
        raise ConfigurationError(f"{key}: expected 'pattern' or 'range', got {dict(value)!r}")
    return value


def _compile(key: str, pattern: Any) -> re.Pattern:
    try:
        return re.compile(pattern)
    except (re.error, TypeError) as exc:
        raise ConfigurationError(f"{key}: invalid pattern {pattern!r}: {exc}") from exc
