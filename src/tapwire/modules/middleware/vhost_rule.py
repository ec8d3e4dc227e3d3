"""Match requests by their Host header."""

import re

from tapwire.modules.proxy.matchers import text_matcher

from .request import Request


class VHostRule:
    """Matches requests addressed to a virtual host.

    ``vhost`` is either an exact host name or a compiled pattern searched
    within the host.
    """

    def __init__(self, vhost: str | re.Pattern):
        self.matcher = text_matcher(vhost, "vhost")

    def match(self, request: Request) -> bool:
        return self.matcher.matches(request.host)

    __call__ = match
