"""Cooperative cancellation tokens.

A token is created per logical call chain (one poll, one user action) and
passed down to every awaitable that may suspend. Cancelling the token aborts
whatever is currently awaited through :meth:`CancelToken.guard` and makes
later checks raise :class:`OperationCancelled`.

Example::

    token = CancelToken()
    task = asyncio.create_task(provider.list({}, cancel=token))
    token.cancel("superseded")
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable

from cloudenv.exceptions import OperationCancelled

__all__ = ["CancelToken", "OperationCancelled"]


class CancelToken:
    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self._reason or "cancelled")

    async def guard[T](self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token fires, the inner task is cancelled (which aborts an
        in-flight aiohttp request) and ``OperationCancelled`` is raised.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled(self._reason or "cancelled")
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            waiter.cancel()
            raise

        if work.done():
            waiter.cancel()
            return work.result()

        work.cancel()
        await asyncio.gather(work, return_exceptions=True)
        raise OperationCancelled(self._reason or "cancelled")
