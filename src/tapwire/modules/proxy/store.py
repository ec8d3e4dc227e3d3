"""In-memory log of proxied traffic."""

import itertools
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from tapwire.modules.middleware.request import Request

from .response import ProxiedResponse

if TYPE_CHECKING:
    from .interceptor import Proxy


@dataclass
class TrafficEntry:
    """Single proxied request/response pair."""

    id: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    method: str = "GET"
    url: str = ""
    request_headers: dict[str, str] = field(default_factory=dict)
    request_body: str = ""

    status_code: int = 0
    response_headers: dict[str, str] = field(default_factory=dict)
    response_body: str = ""

    tags: list[str] = field(default_factory=list)
    notes: str = ""

    @classmethod
    def from_exchange(cls, request: Request, response: ProxiedResponse) -> "TrafficEntry":
        return cls(
            method=request.method,
            url=request.url,
            request_headers=request.headers,
            request_body=request.body.decode("utf-8", errors="replace"),
            status_code=response.status,
            response_headers=dict(response.headers),
            response_body=response.text,
        )


class TrafficStore:
    """Bounded, thread-safe store of proxied exchanges.

    The oldest exchanges are dropped once ``max_entries`` is reached. Ids keep
    increasing until :meth:`clear` is called.
    """

    def __init__(self, max_entries: int = 5000):
        self.max_entries = max_entries
        self._entries: deque[TrafficEntry] = deque(maxlen=max_entries)
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._pending = threading.local()

    @property
    def entries(self) -> list[TrafficEntry]:
        with self._lock:
            return list(self._entries)

    def add(self, entry: TrafficEntry) -> TrafficEntry:
        with self._lock:
            entry.id = next(self._ids)
            self._entries.append(entry)
        return entry

    def record(self, request: Request, response: ProxiedResponse) -> TrafficEntry:
        return self.add(TrafficEntry.from_exchange(request, response))

    def attach(
        self,
        proxy: "Proxy",
        on_exchange: Callable[[TrafficEntry], Any] | None = None,
    ) -> "Proxy":
        """Record every exchange the proxy passes to its ``every_response`` hook.

        This installs both the ``every_request`` and ``every_response`` hooks.
        Hooks already installed are kept and run first; hooks installed after
        ``attach`` replace the recorder. The request is held per thread
        between the two calls.
        """
        previous_request = proxy.request_hook
        previous_response = proxy.response_hook

        def remember(request: Request) -> None:
            if previous_request is not None:
                previous_request(request)
            self._pending.request = request

        def record(response: ProxiedResponse) -> None:
            if previous_response is not None:
                previous_response(response)
            request = getattr(self._pending, "request", None)
            if request is None:
                return
            self._pending.request = None
            entry = self.record(request, response)
            if on_exchange is not None:
                on_exchange(entry)

        return proxy.every_request(remember).every_response(record)

    def _find(self, entry_id: int) -> TrafficEntry | None:
        return next((entry for entry in self._entries if entry.id == entry_id), None)

    def get(self, entry_id: int) -> TrafficEntry | None:
        with self._lock:
            return self._find(entry_id)

    def search(
        self,
        url_pattern: str = "",
        method: str = "",
        status_code: int | None = None,
        tag: str = "",
        body_contains: str = "",
    ) -> list[TrafficEntry]:
        """Return entries meeting every given criterion; empty criteria are ignored."""
        checks: list[Callable[[TrafficEntry], bool]] = []
        if url_pattern:
            checks.append(lambda entry: url_pattern in entry.url)
        if method:
            checks.append(lambda entry: entry.method == method.upper())
        if status_code is not None:
            checks.append(lambda entry: entry.status_code == status_code)
        if tag:
            checks.append(lambda entry: tag in entry.tags)
        if body_contains:
            checks.append(lambda entry: body_contains in entry.response_body)
        return [entry for entry in self.entries if all(check(entry) for check in checks)]

    def tag(self, entry_id: int, tag: str) -> bool:
        """Tag an entry. False when it is missing or already carries ``tag``."""
        with self._lock:
            entry = self._find(entry_id)
            if entry is None or tag in entry.tags:
                return False
            entry.tags.append(tag)
        return True

    def annotate(self, entry_id: int, notes: str) -> bool:
        with self._lock:
            entry = self._find(entry_id)
            if entry is None:
                return False
            entry.notes = notes
        return True

    def clear(self) -> int:
        """Drop every entry and restart ids at 1. Returns how many were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
            self._ids = itertools.count(1)
        return dropped

    def export(self, body_limit: int = 500) -> list[dict[str, Any]]:
        """Plain dicts suitable for JSON, bodies cut to ``body_limit`` characters."""
        exported = []
        with self._lock:
            snapshots = [(entry, asdict(entry)) for entry in self._entries]
        for entry, data in snapshots:
            data["timestamp"] = entry.timestamp.isoformat()
            data["request_body"] = entry.request_body[:body_limit]
            data["response_body"] = entry.response_body[:body_limit]
            exported.append(data)
        return exported

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
