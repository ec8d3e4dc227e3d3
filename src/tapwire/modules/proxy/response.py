"""Normalised response returned from a proxied request."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from http import HTTPStatus


@dataclass
class ProxiedResponse:
    """Status, filtered headers and body chunks of an upstream response.

    The response iterates over its body chunks, so it can be returned
    directly from a WSGI application once ``start_response`` was called.
    """

    body: list[bytes] = field(default_factory=list)
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self.body)

    @property
    def content(self) -> bytes:
        return b"".join(self.body)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def status_line(self) -> str:
        """Status in the ``"404 Not Found"`` form WSGI expects."""
        try:
            reason = HTTPStatus(self.status).phrase
        except ValueError:
            reason = "Unknown"
        return f"{self.status} {reason}"

    @property
    def header_list(self) -> list[tuple[str, str]]:
        return list(self.headers.items())
