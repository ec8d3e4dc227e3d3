"""Debug utilities for proxy traffic visibility.

Thread-safe debug output with rich formatting for the proxy server.
"""

import json
import threading
from typing import Any

from rich.console import Console
from rich.syntax import Syntax

from tapwire.modules.proxy.store import TrafficEntry

# Thread-local storage for debug state
_debug_state = threading.local()

BODY_PREVIEW_CHARS = 100


def set_debug_enabled(enabled: bool) -> None:
    """Set debug mode for the current thread."""
    _debug_state.enabled = enabled


def is_debug_enabled() -> bool:
    """Check if debug mode is enabled for the current thread."""
    return getattr(_debug_state, "enabled", False)


def debug_print(category: str, message: str, console: Console | None = None, **data: Any) -> None:
    """Print debug information if debug mode is enabled.

    Args:
        category: Debug category (request, response, rule)
        message: Main message to display
        console: Console to print to (a new stderr console by default)
        **data: Additional key-value pairs to display
    """
    if not is_debug_enabled():
        return
    console = console or Console(stderr=True)
    console.print(f"[DEBUG:{category}] {message}", style="bold cyan")
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            try:
                json_str = json.dumps(value, indent=2)
                syntax = Syntax(json_str, "json", theme="monokai", line_numbers=False)
                console.print(f"  {key}:", style="dim")
                console.print(syntax)
            except (TypeError, ValueError):
                console.print(f"  {key}: {value}", style="dim")
        elif isinstance(value, str) and len(value) > BODY_PREVIEW_CHARS:
            # Truncate long strings
            console.print(
                f"  {key}: {value[:BODY_PREVIEW_CHARS]}... ({len(value)} chars)", style="dim"
            )
        else:
            console.print(f"  {key}: {value}", style="dim")


def debug_exchange(entry: TrafficEntry, console: Console | None = None) -> None:
    """Dump a recorded request/response pair in debug mode."""
    if not is_debug_enabled():
        return
    debug_print(
        "request",
        f"→ #{entry.id} {entry.method} {entry.url}",
        console=console,
        Headers=entry.request_headers or None,
        Body=entry.request_body or None,
    )
    debug_print(
        "response",
        f"← #{entry.id} {entry.status_code}",
        console=console,
        Headers=entry.response_headers or None,
        Body=entry.response_body or None,
    )
