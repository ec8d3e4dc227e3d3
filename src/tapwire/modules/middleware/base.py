"""Base class for WSGI middleware."""

from collections.abc import Callable, Iterable
from typing import Any

WSGIApp = Callable[[dict[str, Any], Callable[..., Any]], Iterable[bytes]]


class Middleware:
    """WSGI middleware that delegates every request to the wrapped app.

    Subclasses override :meth:`call` and fall back to ``super().call(...)``
    for requests they do not handle. ``configure`` is called with the new
    middleware once it is initialised::

        app = Proxy(app, configure=lambda proxy: proxy.every_request(print))
    """

    def __init__(self, app: WSGIApp, configure: Callable[[Any], Any] | None = None):
        self.app = app
        if configure is not None:
            configure(self)

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]):
        return self.call(environ, start_response)

    def call(self, environ: dict[str, Any], start_response: Callable[..., Any]):
        """Pass the request on to the wrapped application."""
        return self.app(environ, start_response)
