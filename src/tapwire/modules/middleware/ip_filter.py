"""Match requests by client IP address."""

import ipaddress

from tapwire.errors import ConfigurationError

from .request import Request

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


class IPFilter:
    """Matches requests whose REMOTE_ADDR lies within an address or subnet."""

    def __init__(self, ip: str | IPNetwork | ipaddress.IPv4Address | ipaddress.IPv6Address):
        if isinstance(ip, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
            self.network = ip
        else:
            try:
                self.network = ipaddress.ip_network(str(ip), strict=False)
            except ValueError as exc:
                raise ConfigurationError(f"invalid IP address or network: {ip!r}") from exc

    def match(self, request: Request) -> bool:
        if not request.remote_addr:
            return False
        try:
            address = ipaddress.ip_address(request.remote_addr)
        except ValueError:
            return False
        return address in self.network

    __call__ = match
