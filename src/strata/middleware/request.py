"""Request-shaping middleware: base URLs and default headers."""

import httpx

from ..types import Context, HeaderTypes, Next, Response
from .base import Middleware


class UrlPrefixMiddleware(Middleware):
    """Prepend a base URL to every request target, verbatim."""

    def __init__(self, prefix: str):
        self.prefix = prefix

    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        context.request.url = f"{self.prefix}{context.request.url}"
        return await next_handler()


class DefaultHeadersMiddleware(Middleware):
    """
    Merge default headers beneath the request's own headers.

    Header names compare case-insensitively; a header set on the request
    always wins over the default of the same name.
    """

    def __init__(self, headers: HeaderTypes):
        self.headers = httpx.Headers(headers)

    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        merged = httpx.Headers(self.headers)
        merged.update(context.request.headers)
        context.request.headers = merged
        return await next_handler()


def url_prefix(prefix: str) -> UrlPrefixMiddleware:
    """Create a middleware prepending ``prefix`` to request URLs."""
    return UrlPrefixMiddleware(prefix)


def default_headers(headers: HeaderTypes) -> DefaultHeadersMiddleware:
    """Create a middleware applying default headers."""
    return DefaultHeadersMiddleware(headers)
