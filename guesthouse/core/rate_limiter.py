"""
Rate limiter for the public booking endpoint.

The admission logic only sees the ``RateLimiter`` protocol (``allow(key)``),
so the in-memory limiter below can be swapped for a shared one (Redis etc.)
without touching booking rules.

State is process-local and lost on restart: this is abuse control only.
"""
from typing import Protocol

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from guesthouse.core.config import Settings


class RateLimiter(Protocol):
    def allow(self, key: str) -> bool: ...


class SlidingWindowRateLimiter:
    """Moving-window limiter, e.g. ``"8/minute"`` per key."""

    def __init__(self, rate: str, namespace: str = "booking"):
        self.rate = parse(rate)
        self.namespace = namespace
        self._storage = MemoryStorage()
        self._strategy = MovingWindowRateLimiter(self._storage)

    def allow(self, key: str) -> bool:
        # hit() records the request only when it fits in the window
        return self._strategy.hit(self.rate, self.namespace, key)

    def reset(self) -> None:
        self._storage.reset()


class NoopRateLimiter:
    """Used when RATE_LIMIT_ENABLED=false."""

    def allow(self, key: str) -> bool:
        return True


def build_rate_limiter(settings: Settings) -> RateLimiter:
    if not settings.rate_limit_enabled:
        return NoopRateLimiter()
    return SlidingWindowRateLimiter(settings.rate_limit_booking)


def get_client_ip(request: Request) -> str:
    """
    Caller identity for throttling.
    Proxy headers first (the site sits behind a CDN), then the socket peer.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    for header in ("cf-connecting-ip", "x-real-ip"):
        value = request.headers.get(header, "").strip()
        if value:
            return value

    return get_remote_address(request)
