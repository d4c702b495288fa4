import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger(__name__)


def check_cache_connection() -> bool:
    if not settings.CACHES:
        logger.error("CACHES setting is not configured !!")
        raise ValueError("CACHES setting is not configured")

    try:
        cache.set("health_check", "ok", 10)
        return cache.get("health_check") == "ok"
    except Exception as e:
        logger.error(f"Cache connection error: {e}")
        return False


def get_cache_key_value(key):
    try:
        value = cache.get(key)
        if value is None:
            logger.debug(f"Cache miss for key: {key}")
        return value
    except Exception as e:
        # the cache only holds derived data, callers fall back to the database
        logger.error(f"Cache get error for key: {key}, error: {e}")
        return None


def get_cache_many(keys):
    try:
        return cache.get_many(keys)
    except Exception as e:
        logger.error(f"Cache get_many error for {len(keys)} keys, error: {e}")
        return {}


def set_cache_key(key, value, ttl=None):
    try:
        cache.set(key, value, ttl)
        logger.debug(f"Cache set for key: {key}")
    except Exception as e:
        logger.error(f"Cache set error for key: {key}, error: {e}")
