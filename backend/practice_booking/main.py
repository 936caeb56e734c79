import logging

from fastapi import FastAPI
from redis.exceptions import RedisError

from .redis_client import redis_client
from .routers import bookings, slots

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Practice Booking API")

app.include_router(slots.router)
app.include_router(bookings.router)


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except RedisError as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
