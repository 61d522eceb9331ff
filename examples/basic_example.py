"""
Basic Strata Example
====================

This example demonstrates the core features of Strata:
- Registering middleware and the onion execution order
- Deadlines with the timeout middleware
- Retries that refresh credentials between attempts
- Escalating error statuses into exceptions
- Lifecycle callbacks

To run this example:
    uv run python examples/basic_example.py

Note: Talks to https://httpbin.org, so it needs network access.
"""

import asyncio

from pydantic import BaseModel

from strata import (
    CallbackManager,
    Context,
    RequestTimeoutError,
    RetryPolicy,
    Strata,
    UnauthorizedError,
)


class Slideshow(BaseModel):
    """Subset of httpbin's /json payload."""

    title: str
    author: str


class SlideshowDocument(BaseModel):
    slideshow: Slideshow


async def main() -> None:
    callbacks = CallbackManager()

    @callbacks.on_response
    def report(response, request_id, latency_ms):
        print(f"  <- {response.status} in {latency_ms:.0f}ms")

    async with Strata(base_url="https://httpbin.org", callbacks=callbacks) as client:
        # ====================================================================
        # Onion ordering
        # ====================================================================
        print("1. Onion ordering")

        def marker(name: str):
            async def handler(ctx, next_handler):
                print(f"  {name} pre")
                result = await next_handler()
                print(f"  {name} post")
                return result

            return handler

        client.use(marker("outer")).use(marker("inner"))
        response = await client.get("/json")
        doc = response.parse_as(SlideshowDocument)
        print(f"  slideshow: {doc.slideshow.title!r} by {doc.slideshow.author}")

        # ====================================================================
        # Refreshing credentials on 401, retrying server errors
        # ====================================================================
        print("\n2. Retries")

        async def authenticate(ctx: Context, attempt: int, error: BaseException) -> bool:
            if isinstance(error, UnauthorizedError) and attempt == 1:
                ctx.request.headers["authorization"] = "Bearer demo-token"
                return True
            return await RetryPolicy(max_attempts=3, initial_delay=0.2)(ctx, attempt, error)

        client.retry(authenticate).throw_errors()
        response = await client.get("/bearer")
        print(f"  authenticated: {response.data}")

    # ========================================================================
    # Deadlines
    # ========================================================================
    print("\n3. Timeout")
    async with Strata(base_url="https://httpbin.org", timeout=0.5) as client:
        try:
            await client.get("/delay/3")
        except RequestTimeoutError as e:
            print(f"  {e}")


if __name__ == "__main__":
    asyncio.run(main())
