"""
Redis cache utility for streak and heatmap views
"""
import re
import redis
import json
import logging
from datetime import date
from typing import Optional, Any
from reading_tracker.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based caching service for derived streak views"""

    def __init__(self, redis_client=None):
        if redis_client is not None:
            self.redis_client = redis_client
            return

        if not settings.CACHE_ENABLED:
            logger.info("Caching disabled by configuration")
            self.redis_client = None
            return

        try:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    def streak_key(self, user_id: str, today: date) -> str:
        """Streak summaries depend on the day they were computed for"""
        return f"streak:{user_id}:{today.isoformat()}"

    def heatmap_key(self, user_id: str, year: int) -> str:
        return f"heatmap:{user_id}:{year}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.info(f"Cache hit: {key}")
                return json.loads(value)
            logger.info(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(
        self,
        key: str,
        value: Any,
        ttl: int = None
    ) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.STREAK_CACHE_TTL
            serialized = json.dumps(value)
            self.redis_client.setex(key, ttl, serialized)
            logger.info(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def invalidate_user(self, user_id: str) -> bool:
        """Drop every cached streak and heatmap view for a user"""
        if not self.redis_client:
            return False

        # Glob metacharacters in the id must match literally
        escaped = re.sub(r"([\\*?\[\]])", r"\\\1", user_id)

        try:
            keys = []
            for pattern in (f"streak:{escaped}:*", f"heatmap:{escaped}:*"):
                keys.extend(self.redis_client.scan_iter(match=pattern))
            if keys:
                self.redis_client.delete(*keys)
                logger.info(f"Cleared {len(keys)} cache entries for user {user_id}")
            return True
        except Exception as e:
            logger.error(f"Cache invalidate error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
