"""
Redis utilities for the real-time notification channel
"""
import json
import logging
import os
from typing import Any, Dict, Optional

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)

# Check if we're in a terminal that supports colors (not in CI/CD or when output is redirected)
SUPPORTS_COLOR = os.getenv("TERM") is not None and os.getenv("NO_COLOR") is None

REDIS_INFO_COLOR = "\033[96m[REDIS]\033[0m " if SUPPORTS_COLOR else "[REDIS] "
REDIS_WARN_COLOR = "\033[93m[REDIS WARN]\033[0m " if SUPPORTS_COLOR else "[REDIS WARN] "
REDIS_ERROR_COLOR = "\033[91m[REDIS ERROR]\033[0m " if SUPPORTS_COLOR else "[REDIS ERROR] "

NOTIFICATION_CHANNEL_PREFIX = "notifications"

# Redis client instance (initialized on first use)
_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get Redis client instance (singleton pattern)

    Raises:
        ConnectionError: If Redis is not configured or the connection fails
    """
    global _redis_client

    if _redis_client is None:
        if not settings.REDIS_HOST:
            raise ConnectionError("Redis host not configured. Set REDIS_HOST in environment variables.")

        connection_params: Dict[str, Any] = {
            "host": settings.REDIS_HOST,
            "port": settings.REDIS_PORT,
            "db": settings.REDIS_DB,
            "decode_responses": True,
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
        }

        if settings.REDIS_USERNAME and settings.REDIS_PASSWORD:
            connection_params["username"] = settings.REDIS_USERNAME
            connection_params["password"] = settings.REDIS_PASSWORD
        elif settings.REDIS_PASSWORD:
            # Some Redis setups only use password (no username)
            connection_params["password"] = settings.REDIS_PASSWORD

        if settings.REDIS_SSL:
            connection_params["ssl"] = True
            connection_params["ssl_cert_reqs"] = "required"

        try:
            client = redis.Redis(**connection_params)
            client.ping()
        except redis.RedisError as e:
            logger.error(f"{REDIS_ERROR_COLOR}✗ Failed to connect to Redis: {e}")
            raise ConnectionError(f"Redis connection failed: {str(e)}")

        _redis_client = client
        logger.info(f"{REDIS_INFO_COLOR}✓ Connected to Redis at {settings.REDIS_HOST}:{settings.REDIS_PORT}")

    return _redis_client


def is_redis_available() -> bool:
    """Check if Redis is configured and answers a ping"""
    if not settings.REDIS_HOST:
        return False
    try:
        get_redis_client().ping()
        return True
    except (ConnectionError, redis.RedisError) as e:
        logger.warning(f"{REDIS_WARN_COLOR}Redis not available: {e}")
        return False


def notification_channel(user_id: str) -> str:
    return f"{NOTIFICATION_CHANNEL_PREFIX}:{user_id}"


def publish_notification(user_id: str, payload: Dict[str, Any]) -> int:
    """
    Publish a notification on the user's channel

    Returns:
        Number of subscribers that received the message

    Raises:
        ConnectionError: If Redis is not configured or unreachable
        redis.RedisError: If the publish itself fails
    """
    client = get_redis_client()
    receivers = client.publish(notification_channel(user_id), json.dumps(payload, default=str))
    logger.debug(f"{REDIS_INFO_COLOR}Published notification to {notification_channel(user_id)} ({receivers} receivers)")
    return receivers
