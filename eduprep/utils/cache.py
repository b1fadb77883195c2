"""
Redis cache utility for test listings and experiment assignments
"""
import redis
import json
import logging
from typing import Optional, Any
from eduprep.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based caching service; every call degrades to a no-op without Redis"""

    def __init__(self, url: Optional[str] = None):
        url = url if url is not None else settings.REDIS_URL
        self.redis_client = None
        if not url:
            logger.info("REDIS_URL not set. Caching disabled.")
            return

        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    def generate_cache_key(self, namespace: str, *parts: Any) -> str:
        """
        Generate deterministic cache key

        Args:
            namespace: Key prefix, e.g. "tests" or "experiment"
            parts: Remaining key components

        Returns:
            Cache key string, e.g. "experiment:pm_landing:visitor-42"
        """
        return ":".join([namespace, *(str(part) for part in parts)])

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
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds; None stores without expiry

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            serialized = json.dumps(value, default=str)
            if ttl:
                self.redis_client.setex(key, ttl, serialized)
            else:
                self.redis_client.set(key, serialized)
            logger.debug(f"Cache set: {key} (TTL: {ttl or 'none'})")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache"""
        if not self.redis_client:
            return False

        try:
            self.redis_client.delete(key)
            logger.info(f"Cache delete: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
