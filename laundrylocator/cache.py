# laundrylocator/cache.py
"""Small in-process TTL cache for aggregate endpoints (states, cities, sitemap).

One instance is created per app and attached to `app.state.cache`; routes
receive it through the `get_cache` dependency.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Request

from .constants import CACHE_TTL_SECONDS


class TTLCache:
    def __init__(self, ttl: float = CACHE_TTL_SECONDS, maxsize: int = 1024, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.maxsize = maxsize
        self._clock = clock
        self._data: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires, value = item
            if expires <= self._clock():
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            if key not in self._data and len(self._data) >= self.maxsize:
                # drop the entry closest to expiry
                oldest = min(self._data, key=lambda k: self._data[k][0])
                del self._data[oldest]
            self._data[key] = (self._clock() + self.ttl, value)

    def get_or_set(self, key: str, producer: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is None:
            value = producer()
            self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache
