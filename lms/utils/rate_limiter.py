"""
Rate limiting for API endpoints
"""
import time
from collections import defaultdict, deque
from typing import Deque, Dict
import logging

from fastapi import Request, HTTPException

from lms.config import settings

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 3600


class RateLimiter:
    """
    In-memory sliding-window rate limiter

    Keeps one timestamp per request for the last hour; the minute window is
    counted from the same log. Clients idle for an hour are forgotten.
    Single-process only.
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_cleanup = time.time()

    def _get_client_id(self, request: Request) -> str:
        """Gateway-supplied user id, falling back to the client address"""
        user_id = request.headers.get("X-User-Id")
        if user_id:
            return f"user:{user_id}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _reject(self, client_id: str, limit: int, window: str, retry_after: int):
        logger.warning(f"Rate limit exceeded ({window}): {client_id}")
        raise HTTPException(
            status_code=429,
            detail={
                "error": "rate_limit_exceeded",
                "message": f"Too many requests. Limit: {limit} requests per {window}",
                "retry_after": retry_after
            }
        )

    def _cleanup_old_entries(self, now: float) -> None:
        """Drop expired timestamps and forget clients with none left"""
        cutoff = now - HOUR
        for client_id in list(self._requests.keys()):
            log = self._requests[client_id]
            while log and log[0] <= cutoff:
                log.popleft()
            if not log:
                del self._requests[client_id]

        self._last_cleanup = now

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        now = time.time()

        if now - self._last_cleanup >= MINUTE:
            self._cleanup_old_entries(now)

        log = self._requests[client_id]
        while log and log[0] <= now - HOUR:
            log.popleft()

        minute_requests = sum(1 for ts in log if ts > now - MINUTE)
        if minute_requests >= self.requests_per_minute:
            self._reject(client_id, self.requests_per_minute, "minute", MINUTE)

        if len(log) >= self.requests_per_hour:
            self._reject(client_id, self.requests_per_hour, "hour", HOUR)

        log.append(now)

    @property
    def tracked_clients(self) -> int:
        return len(self._requests)

    def reset(self) -> None:
        self._requests.clear()
        self._last_cleanup = time.time()


# Global instance
rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)
