"""Middleware building blocks -- WSGI base class, request view, request predicates."""

from .base import Middleware, WSGIApp
from .ip_filter import IPFilter
from .request import Request, header_name
from .vhost_rule import VHostRule

__all__ = [
    "IPFilter",
    "Middleware",
    "Request",
    "VHostRule",
    "WSGIApp",
    "header_name",
]
