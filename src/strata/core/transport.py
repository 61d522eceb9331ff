"""Default transport backed by httpx."""

from typing import Any

import httpx

from ..types import Request, TransportError, TransportResponse


class HttpxTransport:
    """
    Send requests with an ``httpx.AsyncClient``.

    This is the lowest-level async call in strata. Network failures are
    reported as TransportError with kind "network"; deadlines are left to
    the timeout middleware, so the owned client is built without an httpx
    timeout unless one is passed in ``client_kwargs``.

    Example:
        transport = HttpxTransport(client=httpx.AsyncClient(http2=False))
        client = Strata(transport=transport)
    """

    def __init__(self, client: httpx.AsyncClient | None = None, **client_kwargs: Any):
        """
        Initialize the transport.

        Args:
            client: Client to send with. When omitted one is created lazily
                and closed by ``aclose()``.
            **client_kwargs: Passed to ``httpx.AsyncClient`` when creating one
        """
        self._client = client
        self._owns_client = client is None
        self._client_kwargs = {"timeout": None, **client_kwargs}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(**self._client_kwargs)
        return self._client

    def scoped(self) -> "HttpxTransport":
        """A new transport with the same client settings and its own client."""
        return HttpxTransport(**self._client_kwargs)

    async def __call__(self, request: Request) -> TransportResponse:
        """
        Send a request and read the full reply body.

        Raises:
            TransportError: If the connection fails or the reply cannot be read
        """
        client = self._get_client()
        try:
            reply = await client.request(
                request.method,
                request.url,
                headers=request.headers,
                params=request.params,
                content=request.content,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Transport timeout: {e}", kind="network", request=request
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"Transport error: {e}", kind="network", request=request
            ) from e

        return TransportResponse(
            status=reply.status_code,
            headers=reply.headers,
            content=reply.content,
            encoding=reply.encoding,
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
