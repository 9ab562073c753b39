# services/memory_cache.py
"""
Process-local key/value cache with a per-key TTL.

- One daemon sweeper thread per cache evicts entries at their deadline.
  It starts with the first ``set`` and sleeps until the earliest expiry, so
  idle keys cost a heap slot rather than a thread.
- Expiry is also checked on read against the injected clock, which lets
  tests drive time deterministically (``active_eviction=False``).
- ``get_or_set`` takes no lock: concurrent misses on the same key each run
  the computation and the last write wins.
"""

import heapq
import inspect
import re
import threading
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

DEFAULT_TTL = 300

ComputeFn = Callable[[], Union[Any, Awaitable[Any]]]


class TTLCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic, active_eviction: bool = True):
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._deadlines: List[Tuple[float, str]] = []
        self._lock = threading.Lock()
        self._wakeup = threading.Condition(self._lock)
        self._sweeper: Optional[threading.Thread] = None
        self._closed = False
        self._clock = clock
        self._active_eviction = active_eviction
        self._stats = {"hits": 0, "misses": 0, "sets": 0}

    def _expired(self, expires_at: float) -> bool:
        return self._clock() >= expires_at

    def _start_sweeper(self) -> None:
        if self._sweeper is None and self._active_eviction and not self._closed:
            self._sweeper = threading.Thread(target=self._sweep, name="ttl-cache-sweeper", daemon=True)
            self._sweeper.start()

    def _sweep(self) -> None:
        with self._wakeup:
            while not self._closed:
                now = self._clock()
                while self._deadlines and self._deadlines[0][0] <= now:
                    expires_at, key = heapq.heappop(self._deadlines)
                    item = self._store.get(key)
                    # a newer set() may have replaced the entry since it was scheduled
                    if item is not None and item[0] == expires_at:
                        del self._store[key]
                timeout = self._deadlines[0][0] - now if self._deadlines else None
                self._wakeup.wait(timeout)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            item = self._store.get(key)
            if item is not None and self._expired(item[0]):
                self._store.pop(key, None)
                item = None
            if item is None:
                self._stats["misses"] += 1
                return None
            self._stats["hits"] += 1
            return item[1]

    def set(self, key: str, value: Any, ttl: int = DEFAULT_TTL) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be a positive number of seconds")
        expires_at = self._clock() + ttl
        with self._wakeup:
            self._store[key] = (expires_at, value)
            self._stats["sets"] += 1
            if self._active_eviction and not self._closed:
                heapq.heappush(self._deadlines, (expires_at, key))
                if self._deadlines[0] == (expires_at, key):
                    self._wakeup.notify()
                self._start_sweeper()

    async def get_or_set(self, key: str, compute_fn: ComputeFn, ttl: int = DEFAULT_TTL) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached

        value = compute_fn()
        if inspect.isawaitable(value):
            value = await value
        # only successful computations reach this point
        self.set(key, value, ttl)
        return value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def has(self, key: str) -> bool:
        with self._lock:
            item = self._store.get(key)
            return item is not None and not self._expired(item[0])

    def clear(self) -> None:
        with self._lock:
            self._deadlines.clear()
            self._store.clear()

    def close(self) -> None:
        """Drop every entry and stop the sweeper thread."""
        with self._wakeup:
            self._closed = True
            self._deadlines.clear()
            self._store.clear()
            self._wakeup.notify()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1)

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete every key matching a ``*`` wildcard pattern; returns the count."""
        regex = re.compile("^" + ".*".join(re.escape(part) for part in pattern.split("*")) + "$")
        with self._lock:
            matched = [k for k in self._store if regex.match(k)]
            for k in matched:
                self._store.pop(k, None)
        return len(matched)

    def keys(self) -> List[str]:
        with self._lock:
            return [k for k, (expires_at, _) in self._store.items() if not self._expired(expires_at)]

    def size(self) -> int:
        return len(self.keys())

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = dict(self._stats)
        lookups = stats["hits"] + stats["misses"]
        stats["size"] = self.size()
        stats["hitRate"] = f"{stats['hits'] / lookups * 100:.1f}%" if lookups else "N/A"
        return stats
