from __future__ import annotations

import threading
import time

WINDOW_SEC = 60


class RateLimiter:
    """Fixed one-minute windows per key (client IP)."""

    def __init__(self, limit_per_minute: int):
        self.limit = limit_per_minute
        self._buckets: dict[str, tuple[int, int]] = {}  # key -> (window, count)
        self._lock = threading.Lock()

    def hit(self, key: str, now: float | None = None) -> bool:
        """Count one request. False when the key's bucket is exhausted."""
        window = int((now if now is not None else time.time()) // WINDOW_SEC)
        with self._lock:
            bucket_window, count = self._buckets.get(key, (window, 0))
            if bucket_window != window:
                count = 0
            if count >= self.limit:
                self._buckets[key] = (window, count)
                return False
            self._buckets[key] = (window, count + 1)
            return True

    def evict(self, now: float | None = None) -> int:
        """Drop buckets from past windows. Returns how many were removed."""
        window = int((now if now is not None else time.time()) // WINDOW_SEC)
        with self._lock:
            stale = [k for k, (w, _) in self._buckets.items() if w < window]
            for k in stale:
                del self._buckets[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._buckets)
