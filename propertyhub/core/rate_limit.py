import asyncio
import math
import time
from collections import defaultdict, deque
from typing import Awaitable, Callable, Deque, DefaultDict, Optional

from fastapi import HTTPException, Request, status

from ..config import settings


class RateLimiter:
    """In-process sliding window keyed by ``scope:client``.

    State lives in memory, so limits are per worker process.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._windows: DefaultDict[str, Deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def acquire(self, key: str, limit: int, window: int) -> Optional[float]:
        """Record a hit; return seconds to wait when the key is over its limit."""
        now = self._clock()
        async with self._lock:
            stamps = self._windows[key]
            cutoff = now - window
            while stamps and stamps[0] <= cutoff:
                stamps.popleft()
            if len(stamps) < limit:
                stamps.append(now)
                return None
            return stamps[0] + window - now

    def reset(self) -> None:
        self._windows.clear()


limiter = RateLimiter()


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


def rate_limit_dependency(
    scope: str,
    limit: Optional[int] = None,
    window_seconds: Optional[int] = None,
) -> Callable[[Request], Awaitable[None]]:
    """Route dependency raising 429; limits default to the auth settings at call time."""

    async def enforce_rate_limit(request: Request) -> None:
        window = window_seconds or settings.auth_rate_window_seconds
        wait = await limiter.acquire(f"{scope}:{_client_key(request)}", limit or settings.auth_rate_limit, window)
        if wait is not None:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(max(1, math.ceil(wait)))},
            )

    return enforce_rate_limit
