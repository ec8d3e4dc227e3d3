"""Proxy module -- rule matching, request forwarding, and traffic interception."""

from .interceptor import Proxy
from .interceptor_helpers import (
    HEADERS_DENYLIST,
    HOP_BY_HOP_HEADERS,
    build_outbound,
    filter_headers,
    to_response,
)
from .matchers import Exact, Pattern, Prefix, Span
from .response import ProxiedResponse
from .rule import ProxyRule
from .store import TrafficEntry, TrafficStore
from .transport import HTTPTransport, OutboundRequest, RawResponse, Transport

__all__ = [
    "HEADERS_DENYLIST",
    "HOP_BY_HOP_HEADERS",
    "Exact",
    "HTTPTransport",
    "OutboundRequest",
    "Pattern",
    "Prefix",
    "ProxiedResponse",
    "Proxy",
    "ProxyRule",
    "RawResponse",
    "Span",
    "TrafficEntry",
    "TrafficStore",
    "Transport",
    "build_outbound",
    "filter_headers",
    "to_response",
]
