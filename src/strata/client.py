"""Main Strata client class."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx

from .config import StrataConfig, load_env_files
from .core.transport import HttpxTransport
from .middleware.base import MiddlewareChain
from .middleware.errors import throw_errors
from .middleware.logging import LoggingMiddleware
from .middleware.request import default_headers, url_prefix
from .middleware.retry import RetryMiddleware
from .middleware.timeout import timeout
from .observability.callbacks import CallbackManager
from .types import (
    Context,
    Handler,
    HeaderTypes,
    InvalidMiddlewareError,
    Request,
    Response,
    RetryDecision,
    Transport,
)

logger = logging.getLogger(__name__)


class Strata:
    """
    Async HTTP client running every call through a middleware chain.

    Handlers registered with ``use()`` run in registration order before the
    transport call and in reverse order after it. Non-2xx responses are
    returned as-is unless ``throw_errors()`` is registered.

    Example:
        client = Strata()
        client.url_prefix("https://api.example.com").throw_errors()
        client.retry(RetryPolicy(max_attempts=3))

        response = await client.get("/users/1")
        print(response.status, response.data)
    """

    def __init__(
        self,
        # Environment
        env_file: str | Path | None = None,
        env_files: list[str | Path] | None = None,
        # Configuration
        config: StrataConfig | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        headers: HeaderTypes | None = None,
        # Transport
        transport: Transport | None = None,
        # Logging & Observability
        log_requests: bool = False,
        log_level: str | None = None,
        callbacks: CallbackManager | None = None,
    ):
        """
        Initialize the Strata client.

        Args:
            env_file: Path to .env file to load
            env_files: Multiple .env files to load (later overrides earlier)
            config: Full configuration object (overrides individual params)
            base_url: Prefix prepended to every request URL
            timeout: Deadline for each call in seconds
            headers: Default headers for every request
            transport: Callable sending the request (default: HttpxTransport)
            log_requests: Whether to log requests/responses
            log_level: Logging level
            callbacks: Callback manager for request lifecycle events
        """
        # Load environment files
        load_env_files(env_file, env_files)

        # Build configuration
        if config:
            self._config = config
        else:
            # Start with env-based config, then override with explicit params
            self._config = StrataConfig.from_env()

            if base_url:
                self._config.base_url = base_url
            if timeout is not None:
                self._config.timeout = timeout
            if headers:
                self._config.default_headers = dict(headers)
            if log_requests:
                self._config.log_requests = log_requests
            if log_level:
                self._config.log_level = log_level.upper()

        self._callbacks = callbacks
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport()

        # Setup logging
        logging.basicConfig(level=getattr(logging, self._config.log_level))

        # Configured middleware run outermost, ahead of anything use()'d
        self._middleware: list[Handler] = self._build_middleware()

    def _build_middleware(self) -> list[Handler]:
        """Build the configured middleware stack.

        Middleware order (outermost to innermost):
        1. URL prefix - resolves relative URLs against base_url
        2. Default headers
        3. Logging - sees the final URL, tracks timing and emits events
        4. Timeout - bounds everything registered after it
        """
        middleware: list[Handler] = []

        if self._config.base_url:
            middleware.append(url_prefix(self._config.base_url))
        if self._config.default_headers:
            middleware.append(default_headers(self._config.default_headers))
        if self._config.log_requests or self._callbacks:
            middleware.append(
                LoggingMiddleware(callbacks=self._callbacks, log_level=self._config.log_level)
            )
        if self._config.timeout is not None:
            middleware.append(timeout(self._config.timeout))

        return middleware

    # Registration
    def use(self, handler: Handler) -> "Strata":
        """Append a handler to the chain."""
        if not callable(handler):
            raise InvalidMiddlewareError(
                f"Middleware must be callable, got {type(handler).__name__}"
            )
        self._middleware.append(handler)
        return self

    def url_prefix(self, prefix: str) -> "Strata":
        return self.use(url_prefix(prefix))

    def default_headers(self, headers: HeaderTypes) -> "Strata":
        return self.use(default_headers(headers))

    def throw_errors(self) -> "Strata":
        return self.use(throw_errors())

    def timeout(self, seconds: float) -> "Strata":
        return self.use(timeout(seconds))

    def retry(
        self,
        decision: RetryDecision,
        max_attempts: int | None = None,
    ) -> "Strata":
        """Register a retry middleware, applying the configured safety ceiling."""
        return self.use(
            RetryMiddleware(
                decision,
                max_attempts=(
                    max_attempts if max_attempts is not None else self._config.max_retry_attempts
                ),
                warn_threshold=self._config.retry_warn_threshold,
            )
        )

    def log_requests(
        self,
        callbacks: CallbackManager | None = None,
        log_level: str = "INFO",
    ) -> "Strata":
        return self.use(LoggingMiddleware(callbacks=callbacks, log_level=log_level))

    # Calls
    async def _send(self, context: Context, transport: Transport) -> Response:
        """Innermost step: run the transport and record its outcome."""
        request = context.request
        try:
            call = transport(request)
            if request.signal is not None:
                reply = await request.signal.guard(call)
            else:
                reply = await call
            context.response = Response.from_transport(reply)
        except Exception as e:
            logger.debug(f"Transport failed for {request.method} {request.url}: {e}")
            context.response = None
            context.error = e
            raise
        return context.response

    async def fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: HeaderTypes | None = None,
        params: dict[str, Any] | None = None,
        content: str | bytes | None = None,
        extensions: dict[str, Any] | None = None,
        transport: Transport | None = None,
    ) -> Response:
        """
        Make a request through the middleware chain.

        Args:
            url: Request target (relative when a URL prefix is registered)
            method: HTTP method
            headers: Per-call headers; these win over default headers
            params: Query parameters
            content: Raw request body
            extensions: Per-request values readable by middleware
            transport: Send this call with another transport than the client's

        Returns:
            The response stored on the context once the chain settles.
            May be None if a middleware short-circuits without providing one.
        """
        context = Context(
            request=Request(
                url=url,
                method=method,
                headers=httpx.Headers(headers or {}),
                params=params,
                content=content,
                extensions=dict(extensions or {}),
            )
        )

        sender = transport or self._transport
        chain = MiddlewareChain(self._middleware)
        await chain(context, lambda ctx: self._send(ctx, sender))

        return context.response  # type: ignore[return-value]

    async def get(self, url: str, **kwargs: Any) -> Response:
        return await self.fetch(url, method="GET", **kwargs)

    async def post(self, url: str, **kwargs: Any) -> Response:
        return await self.fetch(url, method="POST", **kwargs)

    async def put(self, url: str, **kwargs: Any) -> Response:
        return await self.fetch(url, method="PUT", **kwargs)

    async def patch(self, url: str, **kwargs: Any) -> Response:
        return await self.fetch(url, method="PATCH", **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> Response:
        return await self.fetch(url, method="DELETE", **kwargs)

    async def post_json(
        self,
        url: str,
        body: Any,
        *,
        headers: HeaderTypes | None = None,
        **kwargs: Any,
    ) -> Response:
        """POST ``body`` serialized as JSON."""
        json_headers = httpx.Headers(headers or {})
        json_headers["content-type"] = "application/json"
        return await self.fetch(
            url,
            method="POST",
            headers=json_headers,
            content=json.dumps(body),
            **kwargs,
        )

    def fetch_sync(self, url: str, **kwargs: Any) -> Response:
        """
        Synchronous version of fetch().

        Each call runs on its own event loop. A transport the client created
        itself is replaced by a fresh one for that loop; an injected
        transport is used as-is and must be safe to use from that loop.

        See fetch() for full parameter documentation.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # We're in an async context - use thread
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor() as executor:
                future = executor.submit(asyncio.run, self._fetch_once(url, **kwargs))
                return future.result()
        else:
            return asyncio.run(self._fetch_once(url, **kwargs))

    async def _fetch_once(self, url: str, **kwargs: Any) -> Response:
        if not (self._owns_transport and isinstance(self._transport, HttpxTransport)):
            return await self.fetch(url, **kwargs)

        # An httpx client is bound to the loop it was created on, so the
        # owned one stays with the caller's loop and this run gets its own
        transport = self._transport.scoped()
        try:
            return await self.fetch(url, transport=transport, **kwargs)
        finally:
            await transport.aclose()

    # Lifecycle
    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            await self._transport.aclose()

    async def __aenter__(self) -> "Strata":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # Properties
    @property
    def config(self) -> StrataConfig:
        """Get the current configuration."""
        return self._config

    @property
    def middleware(self) -> tuple[Handler, ...]:
        """Get the registered handlers, outermost first."""
        return tuple(self._middleware)
