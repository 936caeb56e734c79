# backend/practice_booking/services/slots/redis_store.py
"""
Redis cache of Level 1 candidate slots, one sorted set per tenant day.

    slots:day:{tenant_id}:{date}   member = "HH:MM", score = slot start (unix ts)
    slots:days:{tenant_id}         member = date,    score = when that day key expires

The per-tenant index lets invalidation drop a tenant's days without
scanning the keyspace. Index entries past their score are pruned on write.

An empty day is cached as the single member "__empty__" (score 0) so it
is told apart from a miss.
"""

import logging
import time
from datetime import date, datetime
from typing import Callable

from redis import Redis

from .config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)

EMPTY_SENTINEL = "__empty__"

# Key outlives the last slot start by this much
EXPIRY_GRACE_SECONDS = 60


def _as_str(member) -> str:
    return member.decode() if isinstance(member, bytes) else member


class SlotsRedisStore:
    DAY_PREFIX = "slots:day"
    INDEX_PREFIX = "slots:days"

    def __init__(
        self,
        redis: Redis,
        config: BookingConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.redis = redis
        self.config = config or get_booking_config()
        self.clock = clock

    def day_key(self, tenant_id: int, dt: date) -> str:
        return f"{self.DAY_PREFIX}:{tenant_id}:{dt.isoformat()}"

    def index_key(self, tenant_id: int) -> str:
        return f"{self.INDEX_PREFIX}:{tenant_id}"

    def _expires_at(self, slots: list[tuple[str, float]]) -> int:
        if slots:
            return int(max(slot_ts for _, slot_ts in slots)) + EXPIRY_GRACE_SECONDS
        return int(self.clock()) + self.config.cache_ttl_seconds

    def store_day_slots(
        self,
        tenant_id: int,
        dt: date,
        slots: list[tuple[str, float]],
    ) -> None:
        """Replace the cached day with (time_str, slot_ts) pairs; [] caches an empty day."""
        day_key = self.day_key(tenant_id, dt)
        index_key = self.index_key(tenant_id)
        expires_at = self._expires_at(slots)
        members = dict(slots) if slots else {EMPTY_SENTINEL: 0}

        pipe = self.redis.pipeline()
        pipe.delete(day_key)
        pipe.zadd(day_key, members)
        pipe.expireat(day_key, expires_at)
        pipe.zremrangebyscore(index_key, "-inf", int(self.clock()))
        pipe.zadd(index_key, {dt.isoformat(): expires_at})
        pipe.execute()

        logger.debug(
            f"Slots cached: tenant={tenant_id}, date={dt}, count={len(slots)}, "
            f"expires_at={expires_at}"
        )

    def get_available_slots(
        self,
        tenant_id: int,
        dt: date,
        now: datetime,
    ) -> list[str] | None:
        """
        Cached start times not yet elapsed at now, or None on a miss.
        """
        key = self.day_key(tenant_id, dt)
        now_ts = now.replace(second=0, microsecond=0).timestamp()

        pipe = self.redis.pipeline()
        pipe.exists(key)
        pipe.zrangebyscore(key, now_ts, "+inf")
        exists, members = pipe.execute()

        if not exists:
            return None
        times = [_as_str(m) for m in members]
        return [t for t in times if t != EMPTY_SENTINEL]

    def delete_day_slots(
        self,
        tenant_id: int,
        dates: list[date] | None = None,
    ) -> int:
        """
        Drop cached days of a tenant (all of them when dates is None).

        Returns the number of day keys removed.
        """
        index_key = self.index_key(tenant_id)
        if dates is None:
            days = [_as_str(m) for m in self.redis.zrange(index_key, 0, -1)]
        else:
            days = [dt.isoformat() for dt in dates]
        if not days:
            return 0

        pipe = self.redis.pipeline()
        pipe.delete(*(f"{self.DAY_PREFIX}:{tenant_id}:{day}" for day in days))
        if dates is None:
            pipe.delete(index_key)
        else:
            pipe.zrem(index_key, *days)
        return pipe.execute()[0]
