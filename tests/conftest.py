"""Pytest configuration and fixtures."""

import asyncio
import json
import os
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import httpx
import pytest

from strata import HttpxTransport, Strata


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    # Remove any STRATA_ env vars that might interfere
    for key in list(os.environ.keys()):
        if key.startswith("STRATA_"):
            monkeypatch.delenv(key, raising=False)


async def example_api(request: httpx.Request) -> httpx.Response:
    """In-process stand-in for http://www.example.com."""
    path = request.url.path

    if path == "/delay":
        await asyncio.sleep(0.5)
        return httpx.Response(200, json={"foo": "bar"})

    if path == "/resource" and request.method == "GET":
        return httpx.Response(200, json={"foo": "bar"})

    if path == "/resource" and request.method == "POST":
        if json.loads(request.content or b"null") != {"foo": "bar"}:
            return httpx.Response(422, json={"error": "unexpected body"})
        return httpx.Response(201, json={"foo": "baz"})

    if path == "/authenticated":
        if "authorization" not in request.headers:
            return httpx.Response(401, json={})
        return httpx.Response(200, json={"foo": "bar"})

    if path == "/error":
        status = int(request.headers.get("x-status", "500"))
        return httpx.Response(status, json={})

    if path == "/text":
        return httpx.Response(200, text="plain body")

    if path == "/echo":
        return httpx.Response(
            200,
            json={
                "method": request.method,
                "url": str(request.url),
                "headers": dict(request.headers),
            },
        )

    return httpx.Response(404, text="not found")


@pytest.fixture
async def mock_transport() -> AsyncIterator[HttpxTransport]:
    """A transport answering from example_api without touching the network."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(example_api))
    yield HttpxTransport(client=client)
    await client.aclose()


@pytest.fixture
def make_client(mock_transport: HttpxTransport) -> Callable[..., Strata]:
    """Factory for clients wired to the mock transport."""

    def factory(**kwargs: object) -> Strata:
        return Strata(transport=mock_transport, **kwargs)

    return factory


@pytest.fixture
def mock_env_file(tmp_path: Path) -> Path:
    """Create a temporary .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        """
STRATA_BASE_URL=http://www.example.com
STRATA_TIMEOUT=2.5
STRATA_LOG_LEVEL=DEBUG
"""
    )
    return env_file
