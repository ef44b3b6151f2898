"""
Caller-disconnect cancellation.

Starlette keeps running a handler after its client goes away. Work wrapped
here is cancelled instead, so in-flight outbound calls are abandoned rather
than left to finish unobserved.
"""

import asyncio
import logging
from typing import Awaitable, TypeVar

from starlette.requests import Request


logger = logging.getLogger(__name__)

T = TypeVar("T")

POLL_INTERVAL_SECONDS = 0.1


class ClientDisconnected(Exception):
    """The caller went away before the response was ready."""


async def cancel_on_disconnect(
    request: Request,
    work: Awaitable[T],
    poll_interval: float = POLL_INTERVAL_SECONDS,
) -> T:
    """
    Await work, cancelling it if the client disconnects first.

    The request body must already have been read.

    Raises:
        ClientDisconnected: the client left; work has been cancelled.
        Whatever work raises.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                # Let the task unwind so its spans end before we return
                await asyncio.wait({task})
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()
