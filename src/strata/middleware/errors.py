"""Middleware escalating error status codes into exceptions."""

from ..types import Context, Next, Response, http_error_for_status
from .base import Middleware


class ThrowErrorsMiddleware(Middleware):
    """
    Raise an HTTPError for any response with a status of 400 or above.

    Must wrap the transport call: register it after any middleware that
    should observe the raised error (retry, logging).
    """

    async def __call__(self, context: Context, next_handler: Next) -> Response | None:
        result = await next_handler()

        response = context.response
        if response is not None and response.status >= 400:
            raise http_error_for_status(response.status, response=response)
        return result


def throw_errors() -> ThrowErrorsMiddleware:
    """Create an error escalation middleware."""
    return ThrowErrorsMiddleware()
