import time
from typing import Callable, Dict, List

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._store: Dict[str, List[float]] = {}
        self._clock = clock

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        window_start = now - window_seconds
        # prune
        times = [t for t in self._store.get(key, []) if t > window_start]
        if len(times) >= max_requests:
            self._store[key] = times
            return False
        times.append(now)
        self._store[key] = times
        return True
