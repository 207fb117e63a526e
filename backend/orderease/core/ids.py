from __future__ import annotations

import threading
import time

from orderease.core.config import settings

# 2024-01-01T00:00:00Z in milliseconds
EPOCH_MS = 1704067200000

NODE_BITS = 10
SEQUENCE_BITS = 12
MAX_NODE = (1 << NODE_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1


class SnowflakeGenerator:
    """64-bit time-ordered ids: 41 bits of milliseconds, 10 bits node, 12 bits sequence."""

    def __init__(self, node_id: int, clock=None):
        if not 0 <= node_id <= MAX_NODE:
            raise ValueError(f"node_id must be within 0..{MAX_NODE}")
        self.node_id = node_id
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def next_id(self) -> int:
        with self._lock:
            now = self._clock()
            if now < self._last_ms:
                # clock moved backwards: keep issuing from the last seen millisecond
                now = self._last_ms
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & MAX_SEQUENCE
                if self._sequence == 0:
                    # sequence exhausted for this millisecond: borrow the next one
                    now = self._last_ms + 1
            else:
                self._sequence = 0
            self._last_ms = now
            return ((now - EPOCH_MS) << (NODE_BITS + SEQUENCE_BITS)) | (self.node_id << SEQUENCE_BITS) | self._sequence


_generator = SnowflakeGenerator(settings.SNOWFLAKE_NODE_ID)


def new_id() -> int:
    return _generator.next_id()
