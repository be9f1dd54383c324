"""Fixed-window rate limiting for the public booking endpoint.

The limiter keeps one counter per client identifier in process memory. It is a
soft, best-effort guard: state is lost on restart and is not shared between
worker processes. Under concurrent workers two requests arriving at the window
boundary may both be admitted.
"""

import asyncio
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request

from salon.app.core.logging import get_logger

logger = get_logger(__name__)

FALLBACK_CLIENT_IP = "127.0.0.1"


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""
    allowed: bool
    limit: int
    remaining: int
    retry_after: Optional[int] = None


@dataclass
class RateLimitEntry:
    """Counter state for one client identifier.

    ``count`` is at least 1 for as long as the entry exists.
    """
    count: int
    window_start: float
    last_seen: float


class InMemoryRateLimiter:
    """Lock-guarded fixed-window counter store.

    Create one instance at startup and share it between requests; the
    ``RateLimitSweeper`` evicts idle entries in the background.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 15 * 60,
        idle_seconds: float = 10 * 60,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Requests admitted per identifier per window
            window_seconds: Window length in seconds
            idle_seconds: Entries not seen for this long are swept
            clock: Time source returning seconds, injectable for tests
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_entry(self, identifier: str) -> Optional[RateLimitEntry]:
        with self._lock:
            entry = self._entries.get(identifier)
            if entry is None:
                return None
            return RateLimitEntry(entry.count, entry.window_start, entry.last_seen)

    def check_rate_limit(
        self,
        identifier: str,
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
    ) -> RateLimitResult:
        """Count a request from ``identifier`` and decide whether it may proceed.

        The per-call overrides exist for endpoints with their own budget; by
        default the limiter's configured values apply.
        """
        limit = max_requests if max_requests is not None else self.max_requests
        window = window_seconds if window_seconds is not None else self.window_seconds

        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)

            if entry is None or now > entry.window_start + window:
                self._entries[identifier] = RateLimitEntry(
                    count=1, window_start=now, last_seen=now
                )
                return RateLimitResult(allowed=True, limit=limit, remaining=max(0, limit - 1))

            entry.last_seen = now

            if entry.count >= limit:
                retry_after = max(0, math.ceil(entry.window_start + window - now))
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    retry_after=retry_after,
                )

            entry.count += 1
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, limit - entry.count),
            )

    def reset(self, identifier: str) -> None:
        """Forget everything about ``identifier``."""
        with self._lock:
            self._entries.pop(identifier, None)

    def sweep(self) -> int:
        """Remove entries idle for longer than ``idle_seconds``.

        Works from a snapshot and re-checks each candidate under the lock, so
        concurrent requests are never blocked for a whole pass.

        Returns:
            Number of evicted entries
        """
        now = self._clock()
        with self._lock:
            snapshot = list(self._entries.items())

        removed = 0
        for identifier, entry in snapshot:
            if now - entry.last_seen <= self.idle_seconds:
                continue
            with self._lock:
                current = self._entries.get(identifier)
                if current is not None and now - current.last_seen > self.idle_seconds:
                    del self._entries[identifier]
                    removed += 1

        if removed:
            logger.debug(f"Swept {removed} idle rate limit entries")
        return removed


class RateLimitSweeper:
    """Background task that periodically sweeps a rate limiter.

    Usage:
        sweeper = RateLimitSweeper(limiter, interval=600)
        await sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(self, limiter: InMemoryRateLimiter, interval: float = 10 * 60):
        self._limiter = limiter
        self._interval = interval
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if self._task is not None:
            logger.debug("Rate limit sweeper already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started rate limit sweeper (interval: {self._interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._stop_event.set()

        try:
            await asyncio.wait_for(self._task, timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Rate limit sweeper did not stop gracefully, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
            logger.info("Stopped rate limit sweeper")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
            else:
                break

            try:
                self._limiter.sweep()
            except Exception as e:
                logger.error(f"Error during rate limit sweep: {e}")


def get_client_ip(request: Request) -> str:
    """Best-effort client address for rate limiting.

    Order: first hop of ``X-Forwarded-For``, ``X-Real-IP``, the socket peer,
    then a fixed fallback.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return FALLBACK_CLIENT_IP
