from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import TypeVar

from instantcoder.core.runtime.errors import Cancelled

T = TypeVar("T")


async def race_cancel(awaitable: Awaitable[T], cancel: asyncio.Event | None, *, provider: str | None = None) -> T:
    """Await ``awaitable`` unless ``cancel`` is set first, then raise ``Cancelled``.

    The losing side is cancelled and awaited so no task outlives the call.
    """
    if cancel is None:
        return await awaitable
    if cancel.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise Cancelled(provider=provider)

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (work, waiter):
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    if work in done:
        return work.result()
    raise Cancelled(provider=provider)
