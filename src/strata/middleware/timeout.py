"""Timeout middleware bounding how long the rest of the chain may run."""

import asyncio
import logging

from ..signals import CancellationSignal
from ..types import Context, Next, RequestTimeoutError, Response, TransportError
from .base import Middleware

logger = logging.getLogger(__name__)


class TimeoutMiddleware(Middleware):
    """
    Middleware that aborts the downstream chain after a deadline.

    A cancellation signal is attached to the request; the transport step
    races the network call against it. When the deadline fires the
    resulting abort is reported as RequestTimeoutError, whatever the
    transport. Other errors pass through untouched.

    Example:
        client.use(TimeoutMiddleware(5.0))
    """

    def __init__(self, seconds: float):
        """
        Initialize the timeout middleware.

        Args:
            seconds: Time the downstream chain is allowed to run
        """
        if seconds <= 0:
            raise ValueError(f"Timeout must be positive, got {seconds}")
        self.seconds = seconds

    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        request = context.request
        previous_signal = request.signal
        parent = previous_signal if isinstance(previous_signal, CancellationSignal) else None
        signal = CancellationSignal(parent=parent)
        expired = False

        def expire() -> None:
            nonlocal expired
            expired = True
            signal.abort("deadline exceeded")

        loop = asyncio.get_running_loop()
        deadline = loop.call_later(self.seconds, expire)
        request.signal = signal

        try:
            return await next_handler()
        except TransportError as e:
            # Aborts from an enclosing deadline belong to the enclosing timeout
            if e.kind != "aborted" or not expired:
                raise
            logger.debug(f"Deadline of {self.seconds}s exceeded for {request.method} {request.url}")
            raise RequestTimeoutError(
                f"Request timed out after {self.seconds}s", timeout=self.seconds
            ) from e
        finally:
            deadline.cancel()
            signal.detach()
            request.signal = previous_signal


def timeout(seconds: float) -> TimeoutMiddleware:
    """Create a timeout middleware."""
    return TimeoutMiddleware(seconds)
