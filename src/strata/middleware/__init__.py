"""Middleware for request/response processing."""

from .base import Middleware, MiddlewareChain, PassthroughMiddleware, compose
from .errors import ThrowErrorsMiddleware, throw_errors
from .logging import LoggingMiddleware
from .request import DefaultHeadersMiddleware, UrlPrefixMiddleware, default_headers, url_prefix
from .retry import RetryMiddleware, RetryPolicy, retry
from .timeout import TimeoutMiddleware, timeout

__all__ = [
    "Middleware",
    "MiddlewareChain",
    "PassthroughMiddleware",
    "compose",
    "TimeoutMiddleware",
    "timeout",
    "RetryMiddleware",
    "RetryPolicy",
    "retry",
    "ThrowErrorsMiddleware",
    "throw_errors",
    "UrlPrefixMiddleware",
    "url_prefix",
    "DefaultHeadersMiddleware",
    "default_headers",
    "LoggingMiddleware",
]
