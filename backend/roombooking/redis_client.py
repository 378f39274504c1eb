# backend/roombooking/redis_client.py

import logging
from typing import Optional

from redis import Redis

from .config import settings

logger = logging.getLogger(__name__)

REDIS_SOCKET_TIMEOUT = 2.0


def _make_client() -> Optional[Redis]:
    if not settings.redis_url:
        logger.info("REDIS_URL not set, events and reminder dedup disabled")
        return None
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
    )


redis_client: Optional[Redis] = _make_client()


def get_redis() -> Optional[Redis]:
    """Current client; resolved at call time so it can be swapped in tests."""
    return redis_client
