"""Tapwire CLI - intercepting HTTP proxy middleware."""

import json
import logging
from pathlib import Path
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, make_server

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from tapwire.config import (
    get_listen_host,
    get_listen_port,
    get_rules_file,
    get_timeout,
    get_verbose,
    get_verify_ssl,
    load_rule_file,
)
from tapwire.errors import ConfigurationError, TransportError
from tapwire.modules.middleware.base import WSGIApp
from tapwire.modules.middleware.request import Request
from tapwire.modules.proxy import (
    HOP_BY_HOP_HEADERS,
    HTTPTransport,
    Proxy,
    ProxyRule,
    TrafficEntry,
    TrafficStore,
)
from tapwire.utils.debug import debug_exchange, set_debug_enabled

app = typer.Typer(
    name="tapwire",
    help="Intercepting HTTP proxy middleware",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def not_found_app(environ: dict[str, Any], start_response) -> list[bytes]:
    """Fallback application for requests the proxy does not handle."""
    body = b"Not proxied\n"
    start_response(
        "404 Not Found",
        [("Content-Type", "text/plain"), ("Content-Length", str(len(body)))],
    )
    return [body]


def is_proxy_request(request: Request) -> bool:
    if not request.is_absolute_form:
        logger.debug("%s %s is not a proxy request", request.method, request.path)
        return False
    return True


def bad_gateway(app: WSGIApp) -> WSGIApp:
    """Answer 502 Bad Gateway when the upstream request fails."""

    def wrapped(environ: dict[str, Any], start_response):
        try:
            return app(environ, start_response)
        except TransportError as exc:
            logger.warning("Upstream request failed: %s", exc)
            start_response("502 Bad Gateway", [("Content-Type", "text/plain")])
            return [b"Bad Gateway\n"]

    return wrapped


def build_app(
    rule: ProxyRule,
    store: TrafficStore,
    *,
    timeout: float = 30.0,
    verify_ssl: bool = False,
    fallback: WSGIApp = not_found_app,
) -> WSGIApp:
    """Compose the WSGI application served by ``tapwire serve``.

    Only absolute-form targets, sent by clients using tapwire as their HTTP
    proxy, are forwarded. Origin-form requests are addressed to tapwire
    itself and go to ``fallback``.
    """

    def on_exchange(entry: TrafficEntry) -> None:
        logger.info("#%d %s %s -> %d", entry.id, entry.method, entry.url, entry.status_code)
        debug_exchange(entry)

    proxy = Proxy(
        fallback,
        rule=rule,
        transport=HTTPTransport(timeout=timeout, verify_ssl=verify_ssl),
        headers_denylist=HOP_BY_HOP_HEADERS,
        requests_like=is_proxy_request,
    )
    store.attach(proxy, on_exchange=on_exchange)
    return bad_gateway(proxy)


def parse_range(value: str | None, option: str) -> int | tuple[int, int] | None:
    """Parse ``"404"`` or ``"200-299"`` into an int or an inclusive pair."""
    if value is None:
        return None
    low, sep, high = value.partition("-")
    try:
        if sep:
            return int(low), int(high)
        return int(low)
    except ValueError:
        raise typer.BadParameter(f"expected N or LOW-HIGH, got {value!r}", param_hint=option)


def rule_table(rule: ProxyRule) -> Table:
    table = Table(title="Proxy rule", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Constraint")
    described = rule.describe()
    if not described:
        table.add_row("(any)", "matches every request")
    for name, constraint in described.items():
        table.add_row(name, constraint)
    return table


class QuietHandler(WSGIRequestHandler):
    """Request handler that logs through :mod:`logging` instead of stderr."""

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


@app.command()
def version() -> None:
    """Show the installed Tapwire version."""
    from importlib.metadata import PackageNotFoundError, version as pkg_version

    try:
        current_version = pkg_version("tapwire")
    except PackageNotFoundError:
        current_version = "0.0.0+unknown"

    console.print(f"Tapwire {current_version}")


@app.command()
def rule(
    path: Path = typer.Argument(..., help="YAML rule file"),
) -> None:
    """Load a rule file and show what it matches."""
    try:
        loaded = load_rule_file(path)
    except ConfigurationError as e:
        console.print(f"[red]Invalid rule: {e}[/red]")
        raise typer.Exit(1)
    console.print(rule_table(loaded))


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Address to listen on"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to listen on"),
    rules: Path | None = typer.Option(None, "--rules", "-r", help="YAML rule file"),
    match_host: str | None = typer.Option(None, "--match-host", help="Only proxy this host"),
    method: str | None = typer.Option(None, "--method", help="Only proxy this HTTP method"),
    path_prefix: str | None = typer.Option(
        None, "--path", help="Only proxy paths with this prefix"
    ),
    status: str | None = typer.Option(
        None, "--status", help="Only record responses with this status (N or LOW-HIGH)"
    ),
    body_pattern: str | None = typer.Option(
        None, "--body", help="Only record responses whose body matches this regex"
    ),
    export: Path | None = typer.Option(
        None, "--export", help="Write recorded traffic as JSON on exit"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    debug: bool = typer.Option(False, "--debug", help="Dump every recorded exchange"),
) -> None:
    """Run an HTTP proxy server; point clients at it with their proxy setting."""
    setup_logging(verbose or get_verbose())
    set_debug_enabled(debug)

    try:
        rule_path = rules or get_rules_file()
        if rule_path is not None:
            proxy_rule = load_rule_file(rule_path)
        else:
            proxy_rule = ProxyRule.build(
                host=match_host,
                request_method=method.upper() if method else None,
                request_path=path_prefix,
                response_status=parse_range(status, "--status"),
                response_body=body_pattern,
            )
        listen_host = host or get_listen_host()
        listen_port = port if port is not None else get_listen_port()
        timeout = get_timeout()
        verify_ssl = get_verify_ssl()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)

    store = TrafficStore()
    wsgi_app = build_app(proxy_rule, store, timeout=timeout, verify_ssl=verify_ssl)

    console.print(rule_table(proxy_rule))
    console.print(
        Panel(
            f"[green]Listening on[/green] http://{listen_host}:{listen_port}\n"
            f"[dim]Upstream timeout {timeout}s, TLS verification "
            f"{'on' if verify_ssl else 'off'}. Press Ctrl+C to stop.[/dim]",
            title="Tapwire",
            border_style="green",
        )
    )

    with make_server(listen_host, listen_port, wsgi_app, handler_class=QuietHandler) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            console.print("\n[yellow]Stopping proxy[/yellow]")

    console.print(f"[bold]Recorded exchanges:[/bold] {len(store)}")
    if export is not None:
        export.write_text(json.dumps(store.export(), indent=2))
        console.print(f"[green]Traffic written to[/green] {export}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
