"""Exception types raised by Tapwire."""

from typing import Any


class TapwireError(Exception):
    """Base class for Tapwire errors."""


class ConfigurationError(TapwireError, ValueError):
    """A rule field or configuration file is malformed."""


class TransportError(TapwireError):
    """The upstream request could not be completed."""

    def __init__(self, message: str, request: Any = None):
        super().__init__(message)
        self.request = request
