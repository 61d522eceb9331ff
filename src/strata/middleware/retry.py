"""Retry middleware driven by a decision function."""

import asyncio
import inspect
import logging
from dataclasses import dataclass

from tenacity import RetryCallState, wait_exponential, wait_exponential_jitter

from ..types import (
    Context,
    HTTPError,
    Next,
    RequestTimeoutError,
    Response,
    RetryDecision,
    TransportError,
)
from .base import Middleware

logger = logging.getLogger(__name__)


class RetryMiddleware(Middleware):
    """
    Middleware that re-runs the downstream chain while a decision allows it.

    The decision function receives the context, the 1-based attempt number
    and the error. It may mutate the context (e.g. set an Authorization
    header) and may be async (e.g. to refresh a credential). Returning
    False re-raises the original error.

    No attempt ceiling is imposed unless ``max_attempts`` is given; the
    decision function owns bounding. A warning is logged once when the
    attempt count reaches ``warn_threshold``.

    Example:
        client.use(RetryMiddleware(lambda ctx, attempt, e: attempt < 3))
    """

    def __init__(
        self,
        decision: RetryDecision,
        max_attempts: int | None = None,
        warn_threshold: int | None = 10,
    ):
        """
        Initialize retry middleware.

        Args:
            decision: Called after each failure; truthy means retry
            max_attempts: Hard ceiling on attempts (None = unbounded)
            warn_threshold: Attempt count that triggers a runaway warning
                (None disables it)
        """
        if not callable(decision):
            raise TypeError("Retry decision must be callable")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.decision = decision
        self.max_attempts = max_attempts
        self.warn_threshold = warn_threshold

    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        """Execute with retry logic."""
        attempt = 0
        while True:
            attempt += 1
            if attempt > 1:
                context.error = None
                logger.info(
                    f"Retry attempt {attempt} for "
                    f"{context.request.method} {context.request.url}"
                )
            if self.warn_threshold is not None and attempt == self.warn_threshold:
                logger.warning(
                    f"Request has been attempted {attempt} times; "
                    "check that the retry decision bounds its attempts"
                )
            try:
                return await next_handler()
            except Exception as e:
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    logger.debug(f"Retry ceiling of {self.max_attempts} attempts reached")
                    raise
                should_retry = self.decision(context, attempt, e)
                if inspect.isawaitable(should_retry):
                    should_retry = await should_retry
                if not should_retry:
                    raise


def retry(
    decision: RetryDecision,
    max_attempts: int | None = None,
    warn_threshold: int | None = 10,
) -> RetryMiddleware:
    """Create a retry middleware."""
    return RetryMiddleware(decision, max_attempts=max_attempts, warn_threshold=warn_threshold)


def _retry_after(error: HTTPError) -> float | None:
    """Read a Retry-After header given in seconds."""
    if error.response is None:
        return None
    value = error.response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


@dataclass
class RetryPolicy:
    """
    A ready-made retry decision with exponential backoff.

    Retries escalated HTTP errors whose status is in ``retry_on_status``,
    timeouts and network failures, sleeping between attempts. Pair it with
    ``throw_errors()`` registered after the retry middleware so that error
    statuses reach it as exceptions.

    Example:
        client.retry(RetryPolicy(max_attempts=5, initial_delay=0.5))
        client.throw_errors()
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    retry_on_status: tuple[int, ...] = (429, 500, 502, 503, 504)

    def is_retryable(self, error: BaseException) -> bool:
        """Determine if an error should trigger a retry."""
        if isinstance(error, HTTPError):
            return error.status_code in self.retry_on_status
        if isinstance(error, RequestTimeoutError):
            return True
        if isinstance(error, TransportError):
            return error.kind == "network"
        return False

    def delay_for(self, attempt: int, error: BaseException | None = None) -> float:
        """Backoff to sleep after ``attempt`` failed."""
        if self.jitter:
            strategy = wait_exponential_jitter(
                initial=self.initial_delay,
                max=self.max_delay,
                exp_base=self.exponential_base,
                jitter=self.initial_delay,
            )
        else:
            strategy = wait_exponential(
                multiplier=self.initial_delay,
                max=self.max_delay,
                exp_base=self.exponential_base,
            )
        state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
        state.attempt_number = attempt
        delay = float(strategy(state))

        if isinstance(error, HTTPError):
            retry_after = _retry_after(error)
            if retry_after is not None:
                delay = max(delay, min(retry_after, self.max_delay))
        return delay

    async def __call__(self, context: Context, attempt: int, error: BaseException) -> bool:
        if attempt >= self.max_attempts or not self.is_retryable(error):
            return False
        delay = self.delay_for(attempt, error)
        logger.info(
            f"Attempt {attempt}/{self.max_attempts} failed, retrying in {delay:.2f}s: {error}"
        )
        await asyncio.sleep(delay)
        return True
