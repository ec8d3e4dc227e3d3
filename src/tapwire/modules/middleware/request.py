"""Read-only request view over a WSGI environ."""

import io
from typing import Any
from urllib.parse import SplitResult, parse_qsl, quote, urlsplit

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
PATH_SAFE = "/:@!$&'()*+,;="


def quote_path(path: str) -> str:
    """Re-encode a WSGI path (decoded as latin-1) for use in a URL."""
    return quote(path.encode("latin-1", errors="replace"), safe=PATH_SAFE)


def header_name(name: str) -> str:
    """Canonicalise a header name: ``x_forwarded-for`` becomes ``X-Forwarded-For``."""
    words = name.replace("_", "-").split("-")
    return "-".join(word.capitalize() for word in words)


class Request:
    """An inbound request, as seen by middleware and hooks."""

    def __init__(self, environ: dict[str, Any]):
        self.environ = environ
        self._body: bytes | None = None

    @property
    def target(self) -> SplitResult | None:
        """The absolute-form target (``http://host/path``) a client sends to a forward proxy.

        WSGI servers place such a target in ``PATH_INFO`` unchanged.
        """
        path_info = self.environ.get("PATH_INFO", "")
        if "://" not in path_info:
            return None
        parts = urlsplit(path_info)
        if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
            return None
        return parts

    @property
    def is_absolute_form(self) -> bool:
        return self.target is not None

    @property
    def scheme(self) -> str:
        target = self.target
        if target is not None:
            return target.scheme.lower()
        return self.environ.get("wsgi.url_scheme", "http")

    @property
    def authority(self) -> str:
        """``host[:port]`` from an absolute-form target, else the Host header."""
        target = self.target
        if target is not None:
            return target.netloc.rpartition("@")[2]
        return self.environ.get("HTTP_HOST", "")

    @property
    def host(self) -> str:
        """Host name from the target or Host header, falling back to SERVER_NAME."""
        authority = self.authority
        if authority:
            if authority.startswith("["):
                return authority[: authority.index("]") + 1]
            return authority.rsplit(":", 1)[0] if ":" in authority else authority
        return self.environ.get("SERVER_NAME", "")

    @property
    def port(self) -> int:
        """Port from the target or Host header, falling back to SERVER_PORT."""
        default = 443 if self.scheme == "https" else 80
        authority = self.authority
        if authority:
            _, sep, port = authority.rpartition(":")
            return int(port) if sep and port.isdigit() else default
        server_port = str(self.environ.get("SERVER_PORT", ""))
        return int(server_port) if server_port.isdigit() else default

    @property
    def method(self) -> str:
        return self.environ.get("REQUEST_METHOD", "GET").upper()

    @property
    def path(self) -> str:
        """Full request path (SCRIPT_NAME + PATH_INFO), without the query string."""
        target = self.target
        if target is not None:
            return target.path or "/"
        script = self.environ.get("SCRIPT_NAME", "")
        path_info = self.environ.get("PATH_INFO", "")
        return (script + path_info) or "/"

    @property
    def query_string(self) -> str:
        query = self.environ.get("QUERY_STRING", "")
        if not query and self.target is not None:
            return self.target.query
        return query

    @property
    def content_type(self) -> str | None:
        return self.environ.get("CONTENT_TYPE") or None

    @property
    def content_length(self) -> int:
        try:
            return int(self.environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            return 0

    @property
    def remote_addr(self) -> str | None:
        return self.environ.get("REMOTE_ADDR")

    @property
    def is_form_data(self) -> bool:
        """True for url-encoded or multipart bodies, and for POSTs without a content type."""
        content_type = (self.content_type or "").split(";", 1)[0].strip().lower()
        if not content_type:
            return self.method == "POST"
        return content_type in FORM_CONTENT_TYPES

    @property
    def body(self) -> bytes:
        """Request body, read once; ``wsgi.input`` is rewound for later readers.

        Without a Content-Length the body is only read when the server marks
        ``wsgi.input`` as terminated (chunked uploads); otherwise it is empty.
        """
        if self._body is None:
            stream = self.environ.get("wsgi.input")
            length = self.content_length
            if stream is None:
                self._body = b""
            elif length > 0:
                self._body = stream.read(length)
            elif self.environ.get("wsgi.input_terminated"):
                self._body = stream.read()
            else:
                self._body = b""
            self.environ["wsgi.input"] = io.BytesIO(self._body)
        return self._body

    @property
    def form(self) -> dict[str, str]:
        """Url-encoded form fields. Multipart bodies are not parsed."""
        content_type = (self.content_type or "").split(";", 1)[0].strip().lower()
        if content_type == "multipart/form-data" or not self.is_form_data:
            return {}
        return dict(parse_qsl(self.body.decode("latin-1"), keep_blank_values=True))

    @property
    def headers(self) -> dict[str, str]:
        """Transport-prefixed environ keys, renamed to canonical header names."""
        return {
            header_name(key[len("HTTP_") :]): value
            for key, value in self.environ.items()
            if key.startswith("HTTP_")
        }

    @property
    def url(self) -> str:
        default_port = 443 if self.scheme == "https" else 80
        netloc = self.host if self.port == default_port else f"{self.host}:{self.port}"
        url = f"{self.scheme}://{netloc}{quote_path(self.path)}"
        if self.query_string:
            url += f"?{self.query_string}"
        return url

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.url}>"
