from typing import Protocol


class RateLimiter(Protocol):
    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Record one hit for ``key``; False once ``max_requests`` hits fall inside the window.

        Keys are opaque to the limiter. Callers hash anything personal (emails)
        before it becomes part of a key.
        """
        ...
