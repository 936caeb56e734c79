"""
backend/practice_booking/services/events.py

Event emitter: pushes events to a Redis queue for the notification worker.

Queue:
- events:p2p: booking notifications (confirmation email/SMS)

Dispatch is best-effort: a failure is logged and never reaches the
booking flow.
"""

import json
import time
import logging

from ..config import settings
from ..redis_client import redis_client

logger = logging.getLogger(__name__)

P2P_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict, redis=None) -> bool:
    """
    Emit a p2p event (instant delivery).

    Pushed to Redis list `events:p2p` for the consumer loop.
    Returns True if the event was queued.
    """
    if not settings.notifications_enabled:
        return False

    client = redis if redis is not None else redis_client
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        client.rpush(P2P_QUEUE, json.dumps(event))
        logger.info(f"Event emitted: {event_type} → {P2P_QUEUE}")
        return True
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
        return False
