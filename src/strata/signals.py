"""Cooperative cancellation signals shared between middleware and transports."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from .types import TransportError

T = TypeVar("T")


class CancellationSignal:
    """
    A one-shot abort flag that a transport call can be raced against.

    Signals can be linked: aborting a parent aborts every attached child,
    so nested timeouts all observe the outermost deadline.

    Example:
        signal = CancellationSignal()
        loop.call_later(5.0, signal.abort)
        reply = await signal.guard(transport(request))
    """

    def __init__(self, parent: "CancellationSignal | None" = None):
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._children: list[CancellationSignal] = []
        self._parent = parent
        if parent is not None:
            parent._children.append(self)
            if parent.aborted:
                self.abort(parent.reason)

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def abort(self, reason: str = "aborted") -> None:
        """Abort this signal and every linked child. Later calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        for child in list(self._children):
            child.abort(reason)

    def detach(self) -> None:
        """Unlink from the parent signal."""
        if self._parent is not None:
            try:
                self._parent._children.remove(self)
            except ValueError:
                pass
            self._parent = None

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the signal aborts first.

        Raises:
            TransportError: With kind "aborted" when the signal fires before
                the awaitable settles. The pending work is cancelled.
        """
        if self.aborted:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise TransportError(f"Request aborted: {self._reason}", kind="aborted")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            task.cancel()
            waiter.cancel()
            raise

        if task.done():
            waiter.cancel()
            return task.result()

        task.cancel()
        # Let the cancelled call unwind before reporting the abort
        await asyncio.gather(task, return_exceptions=True)
        raise TransportError(f"Request aborted: {self._reason}", kind="aborted")
