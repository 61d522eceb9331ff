"""Tests for the timeout middleware and cancellation signals."""

import asyncio

import pytest

from strata.middleware.base import compose
from strata.middleware.timeout import TimeoutMiddleware, timeout
from strata.signals import CancellationSignal
from strata.types import Context, Request, RequestTimeoutError, Response, TransportError


def make_context() -> Context:
    return Context(request=Request(url="http://www.example.com/resource"))


def guarded_transport(delay: float, seen: list[CancellationSignal] | None = None):
    """A final handler that honours the request signal, like the client does."""

    async def handler(ctx: Context) -> Response:
        signal = ctx.request.signal
        if seen is not None and signal is not None:
            seen.append(signal)
        work = asyncio.sleep(delay, result=Response(status=200, data={"foo": "bar"}))
        if signal is not None:
            ctx.response = await signal.guard(work)
        else:
            ctx.response = await work
        return ctx.response

    return handler


class TestCancellationSignal:
    """Tests for the signal primitive."""

    async def test_guard_returns_result(self) -> None:
        signal = CancellationSignal()
        assert await signal.guard(asyncio.sleep(0, result="done")) == "done"
        assert signal.aborted is False

    async def test_guard_raises_aborted_transport_error(self) -> None:
        signal = CancellationSignal()
        asyncio.get_running_loop().call_later(0.01, signal.abort)

        with pytest.raises(TransportError) as exc_info:
            await signal.guard(asyncio.sleep(1))

        assert exc_info.value.kind == "aborted"

    async def test_guard_cancels_pending_work(self) -> None:
        cancelled = False

        async def work() -> None:
            nonlocal cancelled
            try:
                await asyncio.sleep(1)
            except asyncio.CancelledError:
                cancelled = True
                raise

        signal = CancellationSignal()
        asyncio.get_running_loop().call_later(0.01, signal.abort)
        with pytest.raises(TransportError):
            await signal.guard(work())

        assert cancelled is True

    async def test_already_aborted_signal_fails_fast(self) -> None:
        signal = CancellationSignal()
        signal.abort("gone")

        with pytest.raises(TransportError, match="gone"):
            await signal.guard(asyncio.sleep(1))

    async def test_guard_propagates_work_errors(self) -> None:
        async def work() -> None:
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError, match="refused"):
            await CancellationSignal().guard(work())

    def test_parent_abort_reaches_child(self) -> None:
        parent = CancellationSignal()
        child = CancellationSignal(parent=parent)

        parent.abort("deadline")

        assert child.aborted is True
        assert child.reason == "deadline"

    def test_child_abort_does_not_reach_parent(self) -> None:
        parent = CancellationSignal()
        child = CancellationSignal(parent=parent)

        child.abort()

        assert parent.aborted is False

    def test_detached_child_is_not_aborted(self) -> None:
        parent = CancellationSignal()
        child = CancellationSignal(parent=parent)
        child.detach()

        parent.abort()

        assert child.aborted is False


class TestTimeoutMiddleware:
    """Tests for the timeout middleware."""

    async def test_completes_within_deadline(self) -> None:
        seen: list[CancellationSignal] = []
        ctx = make_context()

        result = await compose([timeout(1.0)])(ctx, guarded_transport(0.01, seen))

        assert result is not None
        assert result.status == 200
        assert len(seen) == 1
        # Give a disarmed timer a chance to misfire
        await asyncio.sleep(0.02)
        assert seen[0].aborted is False

    async def test_deadline_raises_timeout_error(self) -> None:
        with pytest.raises(RequestTimeoutError) as exc_info:
            await compose([timeout(0.05)])(make_context(), guarded_transport(0.5))

        assert exc_info.value.kind == "timeout"
        assert exc_info.value.timeout == 0.05
        assert isinstance(exc_info.value, TimeoutError)
        assert not isinstance(exc_info.value, TransportError)

    async def test_upstream_sees_timeout_not_abort(self) -> None:
        caught: list[BaseException] = []

        async def observer(ctx, next_handler):
            try:
                return await next_handler()
            except Exception as e:
                caught.append(e)
                return None

        await compose([observer, timeout(0.05)])(make_context(), guarded_transport(0.5))

        assert len(caught) == 1
        assert isinstance(caught[0], RequestTimeoutError)

    async def test_other_errors_pass_through(self) -> None:
        async def failing(ctx: Context) -> Response:
            raise TransportError("connection refused", kind="network")

        with pytest.raises(TransportError) as exc_info:
            await compose([timeout(1.0)])(make_context(), failing)

        assert exc_info.value.kind == "network"

    async def test_timer_disarmed_after_error(self) -> None:
        seen: list[CancellationSignal] = []

        async def failing(ctx: Context) -> Response:
            seen.append(ctx.request.signal)  # type: ignore[arg-type]
            raise ValueError("unrelated")

        with pytest.raises(ValueError):
            await compose([timeout(0.02)])(make_context(), failing)

        await asyncio.sleep(0.05)
        assert seen[0].aborted is False

    async def test_signal_restored_on_exit(self) -> None:
        ctx = make_context()
        await compose([timeout(1.0)])(ctx, guarded_transport(0))
        assert ctx.request.signal is None

    async def test_nested_timeouts_outer_deadline_wins(self) -> None:
        seen: list[CancellationSignal] = []

        with pytest.raises(RequestTimeoutError) as exc_info:
            await compose([timeout(0.05), timeout(5.0)])(
                make_context(), guarded_transport(0.5, seen)
            )

        assert seen[0].aborted is True
        assert exc_info.value.timeout == 0.05
        assert "0.05s" in str(exc_info.value)

    async def test_nested_timeouts_inner_deadline_wins(self) -> None:
        with pytest.raises(RequestTimeoutError) as exc_info:
            await compose([timeout(5.0), timeout(0.05)])(make_context(), guarded_transport(0.5))

        assert exc_info.value.timeout == 0.05

    async def test_foreign_abort_is_not_a_timeout(self) -> None:
        ctx = make_context()
        caller_signal = CancellationSignal()
        ctx.request.signal = caller_signal
        asyncio.get_running_loop().call_later(0.02, caller_signal.abort)

        with pytest.raises(TransportError) as exc_info:
            await compose([timeout(5.0)])(ctx, guarded_transport(0.5))

        assert exc_info.value.kind == "aborted"
        assert ctx.request.signal is caller_signal

    def test_rejects_non_positive_duration(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            TimeoutMiddleware(0)
