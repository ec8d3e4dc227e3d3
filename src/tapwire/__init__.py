"""Tapwire package."""

__all__ = [
    "ConfigurationError",
    "IPFilter",
    "ProxiedResponse",
    "Proxy",
    "ProxyRule",
    "Request",
    "TapwireError",
    "TransportError",
    "VHostRule",
]

from tapwire.errors import ConfigurationError, TapwireError, TransportError
from tapwire.modules.middleware import IPFilter, Request, VHostRule
from tapwire.modules.proxy import ProxiedResponse, Proxy, ProxyRule
