"""Server-sent event framing for the live order stream."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable

from orderease.core.json import dumps
from orderease.services.broadcaster import Subscription

KEEPALIVE_FRAME = ": keepalive\n\n"


def sse_frame(event: str, data: Any) -> str:
    return f"event: {event}\ndata: {dumps(data)}\n\n"


async def order_event_stream(
    sub: Subscription,
    *,
    keepalive_sec: float,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> AsyncIterator[str]:
    """Yield SSE frames for ``sub`` until the client leaves or the subscription closes.

    The subscription is always released when the generator finishes.
    """
    try:
        yield sse_frame("connected", {"message": "connected", "shop_id": sub.shop_id})
        while True:
            if is_disconnected is not None and await is_disconnected():
                break
            try:
                payload = await sub.get(timeout=keepalive_sec)
            except asyncio.TimeoutError:
                yield KEEPALIVE_FRAME
                continue
            if payload is None:
                break
            yield sse_frame("new_order", payload)
    finally:
        sub.close()
