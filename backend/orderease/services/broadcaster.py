"""In-process fan-out of newly created orders to live shop subscribers.

Each subscriber owns a bounded mailbox. Publishing never waits: a full
mailbox drops the event for that subscriber only.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from typing import Any

log = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    def __init__(self, broadcaster: "OrderBroadcaster", sub_id: int, shop_id: int, maxsize: int):
        self.id = sub_id
        self.shop_id = shop_id
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._broadcaster = broadcaster
        self.closed = False

    def offer(self, event: Any) -> bool:
        if self.closed:
            return False
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    async def get(self, timeout: float | None = None) -> Any:
        """Next event, or None when the subscription was closed.

        Raises asyncio.TimeoutError when ``timeout`` elapses without an event.
        """
        if self.closed and self.queue.empty():
            return None
        if timeout is None:
            item = await self.queue.get()
        else:
            item = await asyncio.wait_for(self.queue.get(), timeout=timeout)
        if item is _CLOSED:
            return None
        return item

    def get_nowait(self) -> Any:
        item = self.queue.get_nowait()
        if item is _CLOSED:
            return None
        return item

    def close(self) -> None:
        self._broadcaster.unsubscribe(self)


class OrderBroadcaster:
    def __init__(self, mailbox_size: int = 64):
        self.mailbox_size = mailbox_size
        self._subs: dict[int, Subscription] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)

    def subscribe(self, shop_id: int) -> Subscription:
        with self._lock:
            sub = Subscription(self, next(self._ids), shop_id, self.mailbox_size)
            self._subs[sub.id] = sub
        log.debug("[broadcaster] subscriber %s joined shop %s", sub.id, shop_id)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            removed = self._subs.pop(sub.id, None)
        if removed is None:
            return
        sub.closed = True
        # Wake a reader parked on get(); if the mailbox is full it will drain and then see closed.
        try:
            sub.queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            pass
        log.debug("[broadcaster] subscriber %s left shop %s", sub.id, sub.shop_id)

    def subscriber_count(self, shop_id: int | None = None) -> int:
        with self._lock:
            if shop_id is None:
                return len(self._subs)
            return sum(1 for s in self._subs.values() if s.shop_id == shop_id)

    def publish(self, shop_id: int, order_id: int, payload: Any) -> int:
        """Deliver ``payload`` to every subscriber of ``shop_id``. Returns the delivered count."""
        with self._lock:
            targets = [s for s in self._subs.values() if s.shop_id == shop_id]

        delivered = 0
        for sub in targets:
            if sub.offer(payload):
                delivered += 1
            else:
                log.warning("[broadcaster] mailbox full, dropped order %s for subscriber %s", order_id, sub.id)
        return delivered

    def close_all(self) -> None:
        with self._lock:
            subs = list(self._subs.values())
        for sub in subs:
            self.unsubscribe(sub)
