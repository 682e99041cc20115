"""Cooperative cancellation for transport calls.

Operations take an optional ``asyncio.Event`` as their cancellation signal.
Setting the event aborts the in-flight call; the caller sees
``asyncio.CancelledError``.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable
from typing import Any, TypeVar

T = TypeVar("T")


def raise_if_cancelled(cancel: asyncio.Event | None) -> None:
    """Raise CancelledError if the signal has already fired."""
    if cancel is not None and cancel.is_set():
        raise asyncio.CancelledError("Operation cancelled")


async def _release_result(work: asyncio.Future[Any]) -> None:
    """Close a finished result nobody will receive, such as an opened stream."""
    if work.cancelled() or work.exception() is not None:
        return
    aclose = getattr(work.result(), "aclose", None)
    if aclose is not None:
        await aclose()


async def run_cancellable(awaitable: Awaitable[T], cancel: asyncio.Event | None = None) -> T:
    """Await `awaitable`, aborting it if `cancel` fires first.

    Raises:
        asyncio.CancelledError: If the signal fires before completion
    """
    if cancel is None:
        return await awaitable

    if cancel.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise asyncio.CancelledError("Operation cancelled")

    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.create_task(cancel.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        if work.done():
            await _release_result(work)
        else:
            work.cancel()
        raise
    finally:
        waiter.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await waiter

    if work.done():
        return work.result()

    work.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await work
    raise asyncio.CancelledError("Operation cancelled")
