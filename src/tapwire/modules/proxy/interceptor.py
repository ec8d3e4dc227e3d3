"""WSGI middleware that proxies matching requests and intercepts their traffic."""

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from tapwire.errors import ConfigurationError
from tapwire.modules.middleware.base import Middleware, WSGIApp
from tapwire.modules.middleware.request import Request

from .interceptor_helpers import HEADERS_DENYLIST, build_outbound, to_response
from .response import ProxiedResponse
from .rule import ProxyRule
from .transport import HTTPTransport, Transport

logger = logging.getLogger(__name__)

RequestHook = Callable[[Request], Any]
ResponseHook = Callable[[ProxiedResponse], Any]


class Proxy(Middleware):
    """Proxies requests matching a rule to the host they are addressed to.

    Requests that do not match are passed to the wrapped application.
    Matching requests are handed to the ``every_request`` hook, forwarded,
    and their response is returned to the caller. The ``every_response``
    hook only sees responses that also match the rule's response fields::

        proxy = Proxy(app, request_path="/api", response_status=range(200, 300))
        proxy.every_request(log_request).every_response(log_response)

    Rules and hooks are meant to be set up before traffic starts; changing
    them while requests are in flight is not supported.
    """

    def __init__(
        self,
        app: WSGIApp,
        *,
        rule: ProxyRule | None = None,
        transport: Transport | None = None,
        headers_denylist: Iterable[str] = (),
        requests_like: RequestHook | None = None,
        responses_like: ResponseHook | None = None,
        configure: Callable[["Proxy"], Any] | None = None,
        host: str | re.Pattern | None = None,
        port: int | range | tuple[int, int] | None = None,
        request_method: str | None = None,
        request_path: str | re.Pattern | None = None,
        request_query: str | re.Pattern | None = None,
        response_status: int | range | tuple[int, int] | None = None,
        response_body: str | bytes | re.Pattern | None = None,
    ):
        fields = {
            "host": host,
            "port": port,
            "request_method": request_method,
            "request_path": request_path,
            "request_query": request_query,
            "response_status": response_status,
            "response_body": response_body,
        }
        if rule is None:
            rule = ProxyRule.build(**fields)
        else:
            given = [name for name, value in fields.items() if value is not None]
            if given:
                raise ConfigurationError(
                    f"rule fields cannot be combined with rule=: {', '.join(given)}"
                )
        self.rule = rule
        self.transport = transport if transport is not None else HTTPTransport()
        self.headers_denylist = HEADERS_DENYLIST | frozenset(headers_denylist)

        self._requests_like = requests_like
        self._responses_like = responses_like
        self._every_request: RequestHook | None = None
        self._every_response: ResponseHook | None = None

        super().__init__(app, configure)

    def requests_like(self, hook: RequestHook) -> "Proxy":
        """Use ``hook`` to decide whether a request is proxied."""
        self._requests_like = hook
        return self

    def responses_like(self, hook: ResponseHook) -> "Proxy":
        """Use ``hook`` to decide whether a response is passed to ``every_response``."""
        self._responses_like = hook
        return self

    def every_request(self, hook: RequestHook) -> "Proxy":
        """Call ``hook`` with every request before it is forwarded."""
        self._every_request = hook
        return self

    def every_response(self, hook: ResponseHook) -> "Proxy":
        """Call ``hook`` with every matching response before it is returned."""
        self._every_response = hook
        return self

    @property
    def request_hook(self) -> RequestHook | None:
        """The callable installed with :meth:`every_request`, if any."""
        return self._every_request

    @property
    def response_hook(self) -> ResponseHook | None:
        return self._every_response

    def proxy(self, request: Request) -> ProxiedResponse:
        """Forward ``request`` upstream. Transport errors propagate."""
        options = build_outbound(request)
        logger.debug("Forwarding %s %s", options.method, options.url)
        raw = self.transport.request(options)
        return to_response(raw, self.headers_denylist)

    forward = proxy

    def handle(self, request: Request) -> ProxiedResponse | None:
        """Run the interception pipeline; None means the request is not proxied."""
        if not self.rule.matches_request(request, self._requests_like):
            return None

        if self._every_request is not None:
            self._every_request(request)

        response = self.proxy(request)

        if self.rule.matches_response(response, self._responses_like):
            if self._every_response is not None:
                self._every_response(response)
        else:
            logger.debug(
                "Response %d for %r did not match, skipping hook", response.status, request
            )

        return response

    def call(self, environ: dict[str, Any], start_response: Callable[..., Any]):
        request = Request(environ)
        response = self.handle(request)
        if response is None:
            logger.debug("Passing %r to the application", request)
            return super().call(environ, start_response)

        start_response(response.status_line, response.header_list)
        return response
