"""Tests for request/response types and the httpx transport."""

from dataclasses import dataclass

import httpx
import pytest

from strata.core.transport import HttpxTransport
from strata.types import (
    Request,
    Response,
    TransportError,
    TransportResponse,
    ValidationError,
    is_json_content_type,
)


class TestRequest:
    """Tests for Request normalization."""

    def test_defaults(self) -> None:
        request = Request(url="/resource")

        assert request.method == "GET"
        assert isinstance(request.headers, httpx.Headers)
        assert request.signal is None
        assert request.extensions == {}

    def test_method_uppercased(self) -> None:
        assert Request(url="/", method="post").method == "POST"

    def test_headers_case_insensitive(self) -> None:
        request = Request(url="/", headers={"Content-Type": "text/plain"})  # type: ignore[arg-type]
        assert request.headers["content-type"] == "text/plain"


class TestResponse:
    """Tests for Response normalization."""

    @pytest.mark.parametrize(
        "content_type,expected",
        [
            ("application/json", True),
            ("application/json; charset=utf-8", True),
            ("application/problem+json", True),
            ("APPLICATION/JSON", True),
            ("text/html", False),
            ("", False),
        ],
    )
    def test_json_content_type_detection(self, content_type: str, expected: bool) -> None:
        assert is_json_content_type(content_type) is expected

    def test_json_reply_populates_data(self) -> None:
        reply = TransportResponse(
            status=200,
            headers=httpx.Headers({"content-type": "application/json"}),
            content=b'{"foo": "bar"}',
        )
        response = Response.from_transport(reply)

        assert response.status == 200
        assert response.data == {"foo": "bar"}
        assert response.raw is None
        assert response.ok is True

    def test_empty_json_reply(self) -> None:
        reply = TransportResponse(
            status=204, headers=httpx.Headers({"content-type": "application/json"})
        )
        assert Response.from_transport(reply).data is None

    def test_text_reply_populates_raw(self) -> None:
        reply = TransportResponse(
            status=500,
            headers=httpx.Headers({"content-type": "text/plain"}),
            content="héllo".encode(),
        )
        response = Response.from_transport(reply)

        assert response.data is None
        assert response.raw == "héllo"
        assert response.ok is False

    def test_parse_as_dataclass(self) -> None:
        @dataclass
        class Item:
            id: int
            name: str

        response = Response(status=200, data=[{"id": 1, "name": "a"}])
        assert response.parse_as(list[Item]) == [Item(id=1, name="a")]

    def test_parse_as_without_json_body(self) -> None:
        with pytest.raises(ValidationError, match="not JSON"):
            Response(status=200, raw="text").parse_as(dict)

    def test_parse_as_reports_errors(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Response(status=200, data={"id": "x"}).parse_as(dict[str, int])

        assert exc_info.value.errors


class TestHttpxTransport:
    """Tests for the default transport."""

    async def test_sends_request_fields(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(201, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpxTransport(client=client)
            reply = await transport(
                Request(
                    url="http://www.example.com/items",
                    method="PUT",
                    headers=httpx.Headers({"x-token": "t"}),
                    params={"page": 2},
                    content=b"payload",
                )
            )

        assert reply.status == 201
        assert reply.json() == {"ok": True}
        assert captured[0].method == "PUT"
        assert str(captured[0].url) == "http://www.example.com/items?page=2"
        assert captured[0].headers["x-token"] == "t"
        assert captured[0].content == b"payload"

    async def test_network_failure_is_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpxTransport(client=client)
            with pytest.raises(TransportError) as exc_info:
                await transport(Request(url="http://www.example.com/"))

        assert exc_info.value.kind == "network"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_transport_timeout_is_network_kind(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(TransportError) as exc_info:
                await HttpxTransport(client=client)(Request(url="http://www.example.com/"))

        assert exc_info.value.kind == "network"

    async def test_aclose_leaves_borrowed_client_open(self) -> None:
        client = httpx.AsyncClient()
        transport = HttpxTransport(client=client)

        await transport.aclose()

        assert client.is_closed is False
        await client.aclose()

    async def test_aclose_closes_owned_client(self) -> None:
        transport = HttpxTransport()
        owned = transport._get_client()

        await transport.aclose()

        assert owned.is_closed is True
