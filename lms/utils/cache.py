"""
Redis cache for per-quiz analytics aggregates
"""
import json
import logging
from typing import Any, Dict, Optional
from uuid import UUID

import redis

from lms.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "analytics:quiz"


def quiz_analytics_key(quiz_id: UUID) -> str:
    return f"{KEY_PREFIX}:{quiz_id}"


class AnalyticsCache:
    """
    Quiz analytics keyed by quiz id

    Entries expire after ANALYTICS_CACHE_TTL and are dropped whenever a quiz
    is graded, edited or deleted. Without Redis every call is a no-op and
    callers fall through to the database.
    """

    def __init__(self, redis_url: Optional[str] = None, ttl: Optional[int] = None):
        url = settings.REDIS_URL if redis_url is None else redis_url
        self.ttl = ttl or settings.ANALYTICS_CACHE_TTL
        self.redis_client = None

        if not url:
            logger.info("REDIS_URL not set. Analytics caching disabled.")
            return

        try:
            client = redis.from_url(url, decode_responses=True, socket_connect_timeout=5)
            client.ping()
            self.redis_client = client
            logger.info("Redis connection established")
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis unavailable ({str(e)}). Analytics caching disabled.")

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    def get_quiz(self, quiz_id: UUID) -> Optional[Dict[str, Any]]:
        if not self.enabled:
            return None

        key = quiz_analytics_key(quiz_id)
        try:
            raw = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache read failed for {key}: {str(e)}")
            return None

        if raw is None:
            logger.debug(f"Cache miss: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return json.loads(raw)

    def put_quiz(self, quiz_id: UUID, analytics: Dict[str, Any]) -> bool:
        if not self.enabled:
            return False

        key = quiz_analytics_key(quiz_id)
        try:
            # UUIDs and datetimes are stored as strings
            self.redis_client.setex(key, self.ttl, json.dumps(analytics, default=str))
            return True
        except redis.RedisError as e:
            logger.error(f"Cache write failed for {key}: {str(e)}")
            return False

    def invalidate_quiz(self, quiz_id: UUID) -> None:
        if not self.enabled:
            return

        key = quiz_analytics_key(quiz_id)
        try:
            self.redis_client.delete(key)
            logger.info(f"Invalidated analytics for quiz {quiz_id}")
        except redis.RedisError as e:
            logger.error(f"Cache invalidation failed for {key}: {str(e)}")


# Global instance
analytics_cache = AnalyticsCache()
