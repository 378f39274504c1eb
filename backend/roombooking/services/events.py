"""
backend/roombooking/services/events.py

Event emitter: pushes reservation events to a Redis list for downstream
consumers (staff notifications, dashboards).

Queue:
- events:p2p: reservation_created, reservation_updated, reservation_cancelled
"""

import json
import time
import logging

from .. import redis_client as redis_module

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:p2p"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit an event.

    Best effort: the reservation is already committed, so a Redis failure is
    logged and never propagated to the request.
    """
    redis = redis_module.get_redis()
    if redis is None:
        logger.debug(f"Event skipped (no Redis): {event_type}")
        return

    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis.rpush(EVENTS_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
