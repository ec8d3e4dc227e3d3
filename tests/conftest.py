"""Test configuration and fixtures for Tapwire."""

import io
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from tapwire.modules.proxy import OutboundRequest, RawResponse


class FakeTransport:
    """Transport that records outbound requests and replays canned responses."""

    def __init__(self, *responses: RawResponse):
        self.responses = list(responses) or [
            RawResponse(200, [("Content-Type", "text/plain")], [b"upstream"])
        ]
        self.calls: list[OutboundRequest] = []

    def request(self, options: OutboundRequest) -> RawResponse:
        self.calls.append(options)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


class FailingTransport:
    """Transport that always raises the given error."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls: list[OutboundRequest] = []

    def request(self, options: OutboundRequest) -> RawResponse:
        self.calls.append(options)
        raise self.error


class StartResponse:
    """Records what a WSGI application passed to start_response."""

    def __init__(self) -> None:
        self.status: str | None = None
        self.headers: list[tuple[str, str]] = []

    def __call__(self, status: str, headers: list[tuple[str, str]], exc_info: Any = None):
        self.status = status
        self.headers = headers


class DownstreamApp:
    """WSGI application that records the environs it receives."""

    def __init__(self, body: bytes = b"downstream") -> None:
        self.body = body
        self.calls: list[dict[str, Any]] = []

    def __call__(self, environ: dict[str, Any], start_response) -> list[bytes]:
        self.calls.append(environ)
        start_response("200 OK", [("Content-Type", "text/plain")])
        return [self.body]


def build_environ(
    method: str = "GET",
    path: str = "/",
    query: str = "",
    host: str = "www.example.com",
    port: int = 80,
    scheme: str = "http",
    headers: dict[str, str] | None = None,
    body: bytes = b"",
    content_type: str | None = None,
    remote_addr: str = "127.0.0.1",
) -> dict[str, Any]:
    default_port = 443 if scheme == "https" else 80
    environ: dict[str, Any] = {
        "REQUEST_METHOD": method,
        "SCRIPT_NAME": "",
        "PATH_INFO": path,
        "QUERY_STRING": query,
        "SERVER_NAME": host,
        "SERVER_PORT": str(port),
        "SERVER_PROTOCOL": "HTTP/1.1",
        "HTTP_HOST": host if port == default_port else f"{host}:{port}",
        "REMOTE_ADDR": remote_addr,
        "wsgi.version": (1, 0),
        "wsgi.url_scheme": scheme,
        "wsgi.input": io.BytesIO(body),
        "wsgi.errors": io.StringIO(),
        "wsgi.multithread": False,
        "wsgi.multiprocess": False,
        "wsgi.run_once": False,
    }
    if body:
        environ["CONTENT_LENGTH"] = str(len(body))
    if content_type:
        environ["CONTENT_TYPE"] = content_type
    for name, value in (headers or {}).items():
        environ["HTTP_" + name.upper().replace("-", "_")] = value
    return environ


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_environ() -> Callable[..., dict[str, Any]]:
    """Return a factory for WSGI environs."""
    return build_environ


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def downstream() -> DownstreamApp:
    return DownstreamApp()


@pytest.fixture
def start_response() -> StartResponse:
    return StartResponse()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> Path:
    """Isolate configuration lookups from the real environment and home directory."""
    for key in (
        "TAPWIRE_LISTEN_HOST",
        "TAPWIRE_LISTEN_PORT",
        "TAPWIRE_TIMEOUT",
        "TAPWIRE_VERIFY_SSL",
        "TAPWIRE_RULES_FILE",
        "TAPWIRE_VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(Path, "home", lambda: temp_dir)
    monkeypatch.chdir(temp_dir)
    return temp_dir


@pytest.fixture
def transport_factory() -> type[FakeTransport]:
    """Return the fake transport class, for tests that need canned responses."""
    return FakeTransport


@pytest.fixture
def failing_transport_factory() -> type[FailingTransport]:
    return FailingTransport
