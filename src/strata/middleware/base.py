"""Base middleware protocol and chain composition."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..types import (
    Context,
    FinalHandler,
    Handler,
    InvalidMiddlewareError,
    Next,
    Response,
)


class Middleware(ABC):
    """
    Abstract base class for middleware.

    Middleware can intercept requests before they're sent and responses
    after they're received. They form a chain where each middleware
    awaits the next one (or short-circuits by not awaiting it).

    Plain ``async def handler(context, next_handler)`` functions are
    accepted anywhere a Middleware is; subclass this when the handler
    carries configuration.
    """

    @abstractmethod
    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        """
        Process a request.

        Args:
            context: The per-call context; mutate ``context.request`` before
                awaiting ``next_handler`` and inspect ``context.response``
                after it returns
            next_handler: Continuation running the rest of the chain

        Returns:
            The response, if any
        """
        pass


class MiddlewareChain:
    """
    Chains multiple middleware together.

    Middleware are executed in order, with each one wrapping the next.
    The final handler (the transport call) sits at the end of the chain.
    The chain holds no per-call state: every invocation walks its own
    cursor, so one chain can serve concurrent calls.
    """

    def __init__(self, middleware: Sequence[Handler]):
        """
        Initialize the middleware chain.

        Args:
            middleware: Handlers to apply (in order)

        Raises:
            InvalidMiddlewareError: If ``middleware`` is not a list or tuple
                of callables
        """
        if not isinstance(middleware, (list, tuple)):
            raise InvalidMiddlewareError("Middleware stack must be a list or tuple")
        for handler in middleware:
            if not callable(handler):
                raise InvalidMiddlewareError(
                    f"Middleware must be callable, got {type(handler).__name__}"
                )
        # Snapshot so registrations made mid-call don't leak into this chain
        self._middleware: tuple[Handler, ...] = tuple(middleware)

    def __len__(self) -> int:
        return len(self._middleware)

    async def __call__(
        self,
        context: Context,
        final_handler: FinalHandler | None = None,
    ) -> Response | None:
        """Execute the middleware chain for one call."""
        return await self._dispatch(context, final_handler, 0)

    async def _dispatch(
        self,
        context: Context,
        final_handler: FinalHandler | None,
        index: int,
    ) -> Response | None:
        if index == len(self._middleware):
            # No more middleware, call the final handler
            if final_handler is None:
                return None
            return await final_handler(context)

        current = self._middleware[index]

        async def next_handler() -> Response | None:
            return await self._dispatch(context, final_handler, index + 1)

        return await current(context, next_handler)


def compose(middleware: Sequence[Handler]) -> MiddlewareChain:
    """Compose handlers into a single invocable chain."""
    return MiddlewareChain(middleware)


class PassthroughMiddleware(Middleware):
    """A middleware that does nothing - useful for testing."""

    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        return await next_handler()
