"""Callback system for strata observability."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..types import Request, Response

# Callback type definitions
OnRequestCallback = Callable[[Request, str], Awaitable[None] | None]
OnResponseCallback = Callable[[Response, str, float], Awaitable[None] | None]
OnErrorCallback = Callable[[BaseException, str, float], Awaitable[None] | None]


@dataclass
class CallbackManager:
    """
    Manages callbacks for request/response lifecycle events.

    Example:
        callbacks = CallbackManager()

        @callbacks.on_request
        async def log_request(request, request_id):
            print(f"Request {request_id}: {request.method} {request.url}")

        @callbacks.on_response
        async def log_response(response, request_id, latency_ms):
            print(f"Response {request_id}: {response.status} in {latency_ms}ms")

        client.log_requests(callbacks=callbacks)
    """

    _on_request: list[OnRequestCallback] = field(default_factory=list)
    _on_response: list[OnResponseCallback] = field(default_factory=list)
    _on_error: list[OnErrorCallback] = field(default_factory=list)

    def add_on_request(self, callback: OnRequestCallback) -> None:
        """Add a callback to be called before each request."""
        self._on_request.append(callback)

    def add_on_response(self, callback: OnResponseCallback) -> None:
        """Add a callback to be called after each successful response."""
        self._on_response.append(callback)

    def add_on_error(self, callback: OnErrorCallback) -> None:
        """Add a callback to be called on request errors."""
        self._on_error.append(callback)

    def on_request(self, callback: OnRequestCallback) -> OnRequestCallback:
        """Decorator to register a request callback."""
        self.add_on_request(callback)
        return callback

    def on_response(self, callback: OnResponseCallback) -> OnResponseCallback:
        """Decorator to register a response callback."""
        self.add_on_response(callback)
        return callback

    def on_error(self, callback: OnErrorCallback) -> OnErrorCallback:
        """Decorator to register an error callback."""
        self.add_on_error(callback)
        return callback

    async def emit_request(self, request: Request, request_id: str) -> None:
        """Emit a request event to all registered callbacks."""
        for callback in self._on_request:
            result = callback(request, request_id)
            if isinstance(result, Awaitable):
                await result

    async def emit_response(
        self,
        response: Response,
        request_id: str,
        latency_ms: float,
    ) -> None:
        """Emit a response event to all registered callbacks."""
        for callback in self._on_response:
            result = callback(response, request_id, latency_ms)
            if isinstance(result, Awaitable):
                await result

    async def emit_error(
        self,
        error: BaseException,
        request_id: str,
        latency_ms: float,
    ) -> None:
        """Emit an error event to all registered callbacks."""
        for callback in self._on_error:
            result = callback(error, request_id, latency_ms)
            if isinstance(result, Awaitable):
                await result


def create_logging_callbacks(
    logger: logging.Logger | None = None,
    level: str = "INFO",
) -> CallbackManager:
    """
    Create a CallbackManager that reports each call on a logger.

    Args:
        logger: Logger to write to (default: the ``strata.observability`` logger)
        level: Level for request and response lines; errors always log at ERROR

    Returns:
        A configured CallbackManager
    """
    target = logger or logging.getLogger("strata.observability")
    log_level = getattr(logging, level.upper())
    callbacks = CallbackManager()

    @callbacks.on_request
    def log_request(request: Request, request_id: str) -> None:
        target.log(log_level, f"[{request_id[:8]}] -> {request.method} {request.url}")

    @callbacks.on_response
    def log_response(response: Response, request_id: str, latency_ms: float) -> None:
        target.log(
            log_level,
            f"[{request_id[:8]}] <- {response.status} in {latency_ms:.1f}ms",
        )

    @callbacks.on_error
    def log_error(error: BaseException, request_id: str, latency_ms: float) -> None:
        target.error(
            f"[{request_id[:8]}] failed after {latency_ms:.1f}ms: "
            f"{type(error).__name__}: {error}"
        )

    return callbacks
