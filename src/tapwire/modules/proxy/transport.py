"""Outbound HTTP requests for the proxy."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from tapwire.errors import TransportError
from tapwire.modules.middleware.request import quote_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundRequest:
    """Options for one forwarded request."""

    host: str
    port: int
    method: str = "GET"
    path: str = "/"
    query: str = ""
    content_type: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    form_data: bytes | None = None
    body: bytes | None = None
    scheme: str = "http"

    @property
    def url(self) -> str:
        url = f"{self.scheme}://{_netloc(self.host, self.port)}{quote_path(self.path)}"
        if self.query:
            url += f"?{self.query}"
        return url

    @property
    def content(self) -> bytes | None:
        return self.form_data if self.form_data is not None else self.body


@dataclass
class RawResponse:
    """An upstream response before header filtering."""

    status_code: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    chunks: list[bytes] = field(default_factory=list)


class Transport(Protocol):
    """Performs an outbound request and returns the raw response."""

    def request(self, options: OutboundRequest) -> RawResponse: ...


class HTTPTransport:
    """Blocking transport backed by :class:`httpx.Client`.

    Redirects are not followed and bodies are passed through undecoded, so
    the caller sees exactly what the upstream server sent.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_ssl: bool = False,
        client: httpx.Client | None = None,
    ):
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                verify=self.verify_ssl,
                follow_redirects=False,
            )
        return self._client

    def request(self, options: OutboundRequest) -> RawResponse:
        headers = dict(options.headers)
        if options.content_type:
            headers["Content-Type"] = options.content_type

        try:
            request = self.client.build_request(
                method=options.method,
                url=options.url,
                headers=headers,
                content=options.content,
            )
            response = self.client.send(request, stream=True)
            try:
                chunks = [chunk for chunk in response.iter_raw() if chunk]
            finally:
                response.close()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("Forward failed for %s: %s", options.url, exc)
            raise TransportError(f"{options.method} {options.url} failed: {exc}", options) from exc

        return RawResponse(
            status_code=response.status_code,
            headers=[
                (name.decode("latin-1"), value.decode("latin-1"))
                for name, value in response.headers.raw
            ],
            chunks=chunks,
        )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _netloc(host: str, port: int) -> str:
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    return f"{host}:{port}"
