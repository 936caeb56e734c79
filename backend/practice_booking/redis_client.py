# backend/practice_booking/redis_client.py

from redis import Redis

from .config import settings

# Connection is lazy: nothing is opened until the first command.
redis_client: Redis = Redis.from_url(settings.redis_url, decode_responses=True)


def get_slots_redis() -> Redis | None:
    """Redis client for the slot cache, or None when caching is disabled."""
    if not settings.slots_cache_enabled:
        return None
    return redis_client
