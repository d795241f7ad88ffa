"""Per-client fixed-window rate limiting and response hardening headers."""

import math
import time
from dataclasses import dataclass
from typing import Callable

from cachetools import TTLCache

THROTTLE_MESSAGE = "Too many requests, please try again later."

# Same defaults helmet applies to an Express app
SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self';base-uri 'self';font-src 'self' https: data:;"
        "form-action 'self';frame-ancestors 'self';img-src 'self' data:;"
        "object-src 'none';script-src 'self';script-src-attr 'none';"
        "style-src 'self' https: 'unsafe-inline';upgrade-insecure-requests"
    ),
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


@dataclass
class RateLimitDecision:
    """Outcome of a single hit against the limiter."""
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # Seconds until the client's window closes


class FixedWindowRateLimiter:
    """
    Allow at most ``limit`` hits per client in each ``window`` seconds.

    A client's window opens on its first hit and closes ``window`` seconds
    later. Windows are held in a TTLCache with the same TTL, so idle clients
    drop out on their own and memory stays bounded by ``max_clients``.
    Counters are mutated in place, which leaves the cache expiry at the time
    the window opened.
    """

    def __init__(
        self,
        limit: int = 100,
        window: int = 15 * 60,
        max_clients: int = 10000,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._timer = timer
        self._windows: TTLCache = TTLCache(maxsize=max_clients, ttl=window, timer=timer)

    def hit(self, client_key: str) -> RateLimitDecision:
        now = self._timer()
        entry = self._windows.get(client_key)
        if entry is None or now - entry[0] >= self.window:
            entry = [now, 0]
            self._windows[client_key] = entry

        entry[1] += 1
        reset_after = max(0, math.ceil(entry[0] + self.window - now))
        return RateLimitDecision(
            allowed=entry[1] <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - entry[1]),
            reset_after=reset_after,
        )

    def reset(self):
        """Forget every client's window."""
        self._windows.clear()
