"""Redis connection service used by the redis state store."""

from gauntlet.core.redis.service import RedisNotInitializedError, RedisService

__all__ = ["RedisService", "RedisNotInitializedError"]
