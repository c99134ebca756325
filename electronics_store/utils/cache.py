import json
import logging
from typing import Any, Optional

import redis

from electronics_store.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Connects lazily on the first command
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class CacheService:
    """
    Expiring JSON values in Redis, namespaced as ``<prefix>:<key>``.

    Holds the delivery provider's access token between requests. Redis
    is optional: when it is down every read is a miss and the caller
    fetches a fresh token.
    """

    def __init__(self, client: redis.Redis = None, ttl: int = None):
        self.client = client or redis_client
        self.default_ttl = ttl or settings.CACHE_TTL

    def get(self, prefix: str, key: str) -> Optional[Any]:
        try:
            raw = self.client.get(f"{prefix}:{key}")
        except redis.RedisError as e:
            logger.warning(f"Redis read of {prefix}:{key} failed: {e}")
            return None
        return json.loads(raw) if raw else None

    def set(self, prefix: str, key: str, value: Any, ttl: int = None) -> bool:
        """Store ``value`` for ``ttl`` seconds; False when Redis is unavailable."""
        try:
            self.client.setex(f"{prefix}:{key}", ttl or self.default_ttl, json.dumps(value))
        except redis.RedisError as e:
            logger.warning(f"Redis write of {prefix}:{key} failed: {e}")
            return False
        return True

    def delete(self, prefix: str, key: str) -> bool:
        """Evict a value, e.g. a token the provider has rejected."""
        try:
            self.client.delete(f"{prefix}:{key}")
        except redis.RedisError as e:
            logger.warning(f"Redis delete of {prefix}:{key} failed: {e}")
            return False
        return True

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


cache_service = CacheService()
