"""Shared types and exceptions for strata."""

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, TypeVar

import httpx
import pydantic

T = TypeVar("T")

HeaderTypes = Mapping[str, str] | httpx.Headers | list[tuple[str, str]]
ErrorKind = Literal[
    "aborted",
    "network",
    "http",
    "timeout",
    "invalid_middleware",
    "config",
    "validation",
]


@dataclass
class Request:
    """An outgoing HTTP request, mutated in place by middleware."""

    url: str
    method: str = "GET"
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: dict[str, Any] | None = None
    content: str | bytes | None = None
    # Set by the timeout middleware, honoured by the terminal transport step
    signal: "CancellationSignalProtocol | None" = None
    # Free-form per-request values for middleware to share
    extensions: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, httpx.Headers):
            self.headers = httpx.Headers(self.headers)
        self.method = self.method.upper()


@dataclass
class TransportResponse:
    """A raw reply from a transport, before normalization."""

    status: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""
    encoding: str | None = None

    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)


def is_json_content_type(content_type: str) -> bool:
    """Check whether a content type header denotes a JSON body."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


@dataclass
class Response:
    """
    A normalized HTTP response.

    ``data`` holds the parsed body when the response declares a JSON content
    type. For any other content type ``data`` is None and ``raw`` holds the
    decoded text body.
    """

    status: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    data: Any = None
    raw: str | None = None

    @classmethod
    def from_transport(cls, reply: TransportResponse) -> "Response":
        """Build a response from a transport reply."""
        content_type = reply.headers.get("content-type", "")
        if is_json_content_type(content_type):
            data = reply.json() if reply.content else None
            return cls(status=reply.status, headers=reply.headers, data=data)
        return cls(status=reply.status, headers=reply.headers, raw=reply.text())

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    def parse_as(self, type_: type[T]) -> T:
        """
        Validate the JSON body into ``type_``.

        Accepts pydantic models as well as anything pydantic can build a
        TypeAdapter for (dataclasses, TypedDicts, ``list[int]``...).

        Raises:
            ValidationError: If the body is not JSON or does not match
        """
        if self.data is None:
            raise ValidationError(
                f"Response body is not JSON (content-type: {self.content_type!r})"
            )
        try:
            return pydantic.TypeAdapter(type_).validate_python(self.data)
        except pydantic.ValidationError as e:
            raise ValidationError(str(e), errors=e.errors()) from e


@dataclass
class Context:
    """
    Per-call state threaded through every handler.

    A context owns exactly one request. Once the chain settles it carries
    either a response or an error, never both.
    """

    request: Request
    response: Response | None = None
    error: BaseException | None = None


# Continuation invoking the remainder of the chain
Next = Callable[[], Awaitable[Response | None]]

# A handler is any async callable taking (context, next)
Handler = Callable[[Context, Next], Awaitable[Response | None]]

# Innermost step of the chain
FinalHandler = Callable[[Context], Awaitable[Response | None]]

RetryDecision = Callable[[Context, int, BaseException], bool | Awaitable[bool]]


class CancellationSignalProtocol(Protocol):
    """What the transport step needs from a cancellation signal."""

    @property
    def aborted(self) -> bool: ...

    async def guard(self, awaitable: Awaitable[T]) -> T: ...


class Transport(Protocol):
    """Protocol for the innermost call that talks to the network."""

    async def __call__(self, request: Request) -> TransportResponse:
        """Send a request and return the raw reply."""
        ...


# Exceptions
class StrataError(Exception):
    """Base exception for strata errors."""

    kind: ErrorKind


class TransportError(StrataError):
    """The transport failed to produce a reply."""

    def __init__(
        self,
        message: str,
        kind: Literal["aborted", "network"] = "network",
        request: Request | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.request = request


class RequestTimeoutError(StrataError, TimeoutError):
    """The deadline elapsed before the chain completed."""

    kind: ErrorKind = "timeout"

    def __init__(self, message: str = "Request timed out", timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout


class HTTPError(StrataError):
    """A response with an error status escalated into an exception."""

    kind: ErrorKind = "http"
    default_message = "HTTP error"

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        response: Response | None = None,
    ):
        super().__init__(message or f"{self.default_message} ({status_code})")
        self.status_code = status_code
        self.response = response

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HTTPError):
            return NotImplemented
        return type(self) is type(other) and self.status_code == other.status_code

    __hash__ = StrataError.__hash__


class BadRequestError(HTTPError):
    default_message = "Bad Request"


class UnauthorizedError(HTTPError):
    default_message = "Unauthorized"


class ForbiddenError(HTTPError):
    default_message = "Forbidden"


class NotFoundError(HTTPError):
    default_message = "Not Found"


class TooManyRequestsError(HTTPError):
    default_message = "Too Many Requests"


class ServerError(HTTPError):
    default_message = "Internal Server Error"


_STATUS_ERRORS: dict[int, type[HTTPError]] = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    429: TooManyRequestsError,
}


def http_error_for_status(status_code: int, response: Response | None = None) -> HTTPError:
    """Build the error matching an HTTP status code."""
    if status_code >= 500:
        error_cls: type[HTTPError] = ServerError
    else:
        error_cls = _STATUS_ERRORS.get(status_code, HTTPError)
    return error_cls(status_code, response=response)


class InvalidMiddlewareError(StrataError, TypeError):
    """The handler sequence could not be composed."""

    kind: ErrorKind = "invalid_middleware"


class ConfigError(StrataError):
    """Configuration error."""

    kind: ErrorKind = "config"


class ValidationError(StrataError):
    """Response validation failed."""

    kind: ErrorKind = "validation"

    def __init__(self, message: str, errors: list[Any] | None = None):
        super().__init__(message)
        self.errors = errors or []
