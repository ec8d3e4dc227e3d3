"""Helpers for building forwarded requests and normalising their responses."""

from collections.abc import Iterable

from tapwire.modules.middleware.request import Request, header_name

from .response import ProxiedResponse
from .transport import OutboundRequest, RawResponse

# Never copied from the upstream response: the body has already been read in full.
HEADERS_DENYLIST = frozenset({"Transfer-Encoding"})

# Hop-by-hop headers (RFC 2616, section 13.5.1), which WSGI servers refuse from applications.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "Connection",
        "Keep-Alive",
        "Proxy-Authenticate",
        "Proxy-Authorization",
        "Te",
        "Trailers",
        "Transfer-Encoding",
        "Upgrade",
    }
)


def build_outbound(request: Request) -> OutboundRequest:
    """Derive the forwarded request from an inbound one.

    The body is forwarded already de-chunked, so an inbound Transfer-Encoding
    header is not copied. For absolute-form targets the Host header is taken
    from the target.
    """
    headers = {
        name: value for name, value in request.headers.items() if name not in HEADERS_DENYLIST
    }
    if request.is_absolute_form:
        headers["Host"] = request.authority

    form_data = None
    body = None
    if request.is_form_data:
        form_data = request.body or None
    elif request.body:
        body = request.body

    return OutboundRequest(
        scheme=request.scheme,
        host=request.host,
        port=request.port,
        method=request.method,
        path=request.path,
        query=request.query_string,
        content_type=request.content_type,
        headers=headers,
        form_data=form_data,
        body=body,
    )


def filter_headers(
    raw_headers: Iterable[tuple[str, str]],
    denylist: Iterable[str] = HEADERS_DENYLIST,
) -> dict[str, str]:
    """Copy headers under canonical names, dropping denylisted ones.

    Repeated headers are joined with ``", "``.
    """
    denied = {header_name(name) for name in denylist}
    headers: dict[str, str] = {}
    for name, value in raw_headers:
        name = header_name(name)
        if name in denied:
            continue
        headers[name] = f"{headers[name]}, {value}" if name in headers else value
    return headers


def to_response(
    raw: RawResponse,
    denylist: Iterable[str] = HEADERS_DENYLIST,
) -> ProxiedResponse:
    """Wrap a raw upstream response, copying status and body verbatim."""
    return ProxiedResponse(
        body=list(raw.chunks),
        status=raw.status_code,
        headers=filter_headers(raw.headers, denylist),
    )
