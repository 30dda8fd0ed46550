"""
Route helpers
"""

import asyncio
from typing import Awaitable, TypeVar

from fastapi import Request

from auth_gateway.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# nginx convention for "client closed request"
CLIENT_CLOSED_REQUEST = 499


class ClientDisconnected(Exception):
    """The caller went away before the response was ready"""


async def cancel_on_disconnect(request: Request, awaitable: Awaitable[T], poll_interval: float) -> T:
    """
    Await `awaitable`, cancelling it if the client disconnects first

    Raises:
        ClientDisconnected: the client disconnected and the work was cancelled
    """
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info(
                    "Client disconnected, cancelling downstream work",
                    method=request.method,
                    path=request.url.path,
                )
                task.cancel()
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()
