"""Sliding-window, per-client rate limiting as a FastAPI dependency."""

import time
from collections import defaultdict, deque
from typing import Deque, Dict, Optional

from fastapi import HTTPException, Request, status


class RateLimiter:
    def __init__(self, requests_limit: int, time_window: int):
        self.requests_limit = requests_limit
        self.time_window = time_window  # in seconds
        self.hits: Dict[str, Deque[float]] = defaultdict(deque)
        self.cleanup_interval = 600  # seconds between sweeps of idle clients
        self.last_cleanup: Optional[float] = None

    def client_key(self, request: Request) -> str:
        """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        if request.client and request.client.host:
            return request.client.host
        return "unknown"

    async def __call__(self, request: Request):
        key = self.client_key(request)
        now = time.monotonic()

        if self.last_cleanup is None:
            self.last_cleanup = now
        elif now - self.last_cleanup > self.cleanup_interval:
            self._cleanup(now)
            self.last_cleanup = now

        window = self.hits[key]
        while window and now - window[0] >= self.time_window:
            window.popleft()

        if len(window) >= self.requests_limit:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )

        window.append(now)
        return True

    def _cleanup(self, now: float) -> None:
        """Drop clients whose newest hit has left the window."""
        idle = [key for key, window in self.hits.items() if not window or now - window[-1] >= self.time_window]
        for key in idle:
            del self.hits[key]

    def reset(self) -> None:
        self.hits.clear()
        self.last_cleanup = None


# 5 requests per minute per client for AI receipt parsing (each call hits a paid model)
# Note: In a real distributed system, use Redis. For this app, memory is fine.
receipt_parse_rate_limiter = RateLimiter(requests_limit=5, time_window=60)
