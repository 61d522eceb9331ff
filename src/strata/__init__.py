"""
Strata - Async HTTP client built on a composable middleware chain.

Features:
- Onion-model middleware: pre-logic outside-in, post-logic inside-out
- Deadlines with cooperative cancellation
- Retries driven by a decision function, with ready-made backoff policies
- Opt-in escalation of error statuses into typed exceptions
- Pluggable transport (httpx by default)
- Structured request logging and lifecycle callbacks
"""

from .client import Strata
from .config import StrataConfig, load_env_files
from .core import HttpxTransport
from .middleware import (
    DefaultHeadersMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewareChain,
    RetryMiddleware,
    RetryPolicy,
    ThrowErrorsMiddleware,
    TimeoutMiddleware,
    UrlPrefixMiddleware,
    compose,
    default_headers,
    retry,
    throw_errors,
    timeout,
    url_prefix,
)
from .observability import CallbackManager, create_logging_callbacks
from .signals import CancellationSignal
from .types import (
    BadRequestError,
    ConfigError,
    # Pipeline types
    Context,
    ForbiddenError,
    Handler,
    HTTPError,
    InvalidMiddlewareError,
    Next,
    NotFoundError,
    # Request/Response types
    Request,
    RequestTimeoutError,
    Response,
    RetryDecision,
    ServerError,
    # Exceptions
    StrataError,
    TooManyRequestsError,
    Transport,
    TransportError,
    TransportResponse,
    UnauthorizedError,
    ValidationError,
    http_error_for_status,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "Strata",
    # Configuration
    "StrataConfig",
    "load_env_files",
    # Request/Response
    "Request",
    "Response",
    "TransportResponse",
    # Pipeline
    "Context",
    "Handler",
    "Next",
    "RetryDecision",
    "Middleware",
    "MiddlewareChain",
    "compose",
    # Middleware
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
    # Transport
    "Transport",
    "HttpxTransport",
    "CancellationSignal",
    # Observability
    "CallbackManager",
    "create_logging_callbacks",
    # Exceptions
    "StrataError",
    "TransportError",
    "RequestTimeoutError",
    "HTTPError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "TooManyRequestsError",
    "ServerError",
    "InvalidMiddlewareError",
    "ConfigError",
    "ValidationError",
    "http_error_for_status",
]
