"""Fixed-window request limiter keyed by client address."""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable
from fastapi import Depends, Request
from postdesk.core.config import settings
from postdesk.core.errors import RateLimited
from postdesk.core.logging_config import log_security_event, get_client_ip

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """
    Fixed-window rate limiter with a bounded client table.

    Each client address gets ``max_requests`` per ``window_seconds``; the
    window starts with the client's first request and the count restarts once
    it has elapsed. At most ``max_clients`` addresses are tracked, the least
    recently seen one being evicted when a new address arrives.

    The limiter is an ordinary object handed out by ``get_posts_rate_limiter``,
    so it can be replaced per application or per test.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        max_clients: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per window
            window_seconds: Window length
            max_clients: Tracked addresses before eviction
            clock: Time source in seconds
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self.clock = clock
        self._windows: "OrderedDict[str, _Window]" = OrderedDict()
        self._lock = threading.Lock()

    def hit(self, key: str) -> bool:
        """Record a request; True while the client is within its budget."""
        with self._lock:
            now = self.clock()
            window = self._windows.get(key)

            if window is None or now > window.reset_at:
                window = _Window(count=1, reset_at=now + self.window_seconds)
            else:
                window.count += 1

            self._windows[key] = window
            self._windows.move_to_end(key)
            while len(self._windows) > self.max_clients:
                evicted, _ = self._windows.popitem(last=False)
                logger.debug(f"Rate limiter evicted {evicted}")

            return window.count <= self.max_requests

    def retry_after(self, key: str) -> int:
        """Seconds until the client's window resets."""
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                return 0
            return max(0, int(window.reset_at - self.clock()) + 1)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


posts_rate_limiter = FixedWindowRateLimiter(
    max_requests=settings.POSTS_RATE_LIMIT,
    window_seconds=settings.POSTS_RATE_WINDOW_SECONDS,
    max_clients=settings.RATE_LIMIT_MAX_CLIENTS,
)


def get_posts_rate_limiter() -> FixedWindowRateLimiter:
    return posts_rate_limiter


def enforce_posts_rate_limit(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_posts_rate_limiter),
) -> None:
    """Dependency for the posts collection endpoints."""
    client_ip = get_client_ip(request)
    if limiter.hit(client_ip):
        return

    log_security_event(
        event_type="ratelimit.exceeded",
        message=f"Rate limit exceeded for IP: {client_ip}",
        level=logging.WARNING,
        ip_address=client_ip,
        request_method=request.method,
        request_path=request.url.path,
        event_category="abuse",
    )
    raise RateLimited(details={"retry_after": limiter.retry_after(client_ip)})
