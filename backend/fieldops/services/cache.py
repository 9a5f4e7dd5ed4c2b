import time
from typing import Any, Callable, Hashable, Optional

CACHE_DURATION = 30 * 60  # seconds


class TTLCache:
    """
    Small in-process cache. get() only returns entries younger than the TTL;
    expired entries stay around for last(), the offline fallback.
    """

    def __init__(self, ttl: float = CACHE_DURATION, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._data: dict = {}
        self._timestamps: dict = {}

    def get(self, key: Hashable, force_reload: bool = False) -> Optional[Any]:
        if force_reload or key not in self._data:
            return None

        stamp = self._timestamps.get(key)
        if stamp is None or self._clock() - stamp > self.ttl:
            return None
        return self._data[key]

    def set(self, key: Hashable, value: Any):
        self._data[key] = value
        self._timestamps[key] = self._clock()

    def last(self, key: Hashable) -> Optional[Any]:
        """Last stored value regardless of age."""
        return self._data.get(key)

    def delete(self, key: Hashable):
        self._data.pop(key, None)
        self._timestamps.pop(key, None)

    def clear(self):
        self._data.clear()
        self._timestamps.clear()
