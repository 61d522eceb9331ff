"""Logging middleware for strata."""

import logging
import time
import uuid

from ..observability.callbacks import CallbackManager
from ..types import Context, Next, Response
from .base import Middleware

logger = logging.getLogger(__name__)


class LoggingMiddleware(Middleware):
    """
    Middleware that logs requests and responses.

    Times the downstream chain, logs start/completion/error lines and
    forwards each event to an optional CallbackManager. The request id is
    stored in ``context.request.extensions["request_id"]``.

    Example:
        callbacks = CallbackManager()
        middleware = LoggingMiddleware(callbacks=callbacks, log_level="DEBUG")
    """

    def __init__(
        self,
        callbacks: CallbackManager | None = None,
        log_level: str = "INFO",
    ):
        """
        Initialize the logging middleware.

        Args:
            callbacks: Callback manager for event hooks
            log_level: Level for start/completion lines
        """
        self._callbacks = callbacks
        self._log_level = getattr(logging, log_level.upper())

    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        """Process request with logging."""
        request = context.request
        request_id = str(uuid.uuid4())
        request.extensions["request_id"] = request_id
        start_time = time.perf_counter()

        if self._callbacks:
            await self._callbacks.emit_request(request, request_id)

        logger.log(
            self._log_level,
            f"[{request_id[:8]}] Starting request: {request.method} {request.url}",
        )

        try:
            result = await next_handler()
        except Exception as e:
            latency_ms = (time.perf_counter() - start_time) * 1000

            if self._callbacks:
                await self._callbacks.emit_error(e, request_id, latency_ms)

            logger.error(f"[{request_id[:8]}] Error after {latency_ms:.1f}ms: {e}")
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        response = context.response

        if self._callbacks and response is not None:
            await self._callbacks.emit_response(response, request_id, latency_ms)

        logger.log(
            self._log_level,
            f"[{request_id[:8]}] Completed: {latency_ms:.1f}ms, "
            f"status={response.status if response else 'N/A'}",
        )

        return result
