import redis
from typing import Optional

from pbportal.config import Settings, get_settings


def create_redis_client(settings: Optional[Settings] = None) -> redis.Redis:
    """Build a Redis client for the local key-value store."""
    settings = settings or get_settings()
    return redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
    )
