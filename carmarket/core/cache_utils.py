"""
Cache helpers for public listing searches and dashboard statistics.

Entries are keyed ``<prefix>:<digest of the parameters>`` so a whole area
can be dropped by prefix. With django-redis the prefix is matched with
SCAN; other backends (local memory in development and tests) are cleared.
"""
import hashlib
import json
import logging

from django.core.cache import cache

logger = logging.getLogger(__name__)

LISTINGS_CACHE_TTL = 120  # seconds
DASHBOARD_STATS_CACHE_TTL = 300

LISTINGS_CACHE_PREFIX = "listings_list"
DASHBOARD_STATS_CACHE_PREFIX = "dashboard_stats"


def make_cache_key(prefix, **params):
    """Stable key for ``params`` regardless of their order"""
    payload = json.dumps(params, sort_keys=True, default=str)
    return f"{prefix}:{hashlib.md5(payload.encode()).hexdigest()}"


def _redis_connection():
    """Raw Redis client, or None when the cache is not django-redis"""
    from django_redis import get_redis_connection
    try:
        return get_redis_connection("default")
    except NotImplementedError:
        return None


def invalidate_cache_pattern(prefix):
    """Drop every entry whose key contains ``prefix``"""
    try:
        redis_conn = _redis_connection()
        if redis_conn is None:
            cache.clear()
            logger.debug(f"Cache cleared for {prefix} (backend has no key scan)")
            return
        keys = list(redis_conn.scan_iter(match=f"*{prefix}*", count=100))
        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys for {prefix}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache for {prefix}: {str(e)}")


def get_cached_listings(filters_dict):
    """
    Look up a listing search.
    Returns tuple: (cached_data or None, cache_key)
    """
    cache_key = make_cache_key(LISTINGS_CACHE_PREFIX, **filters_dict)
    return cache.get(cache_key), cache_key


def cache_listings(cache_key, data, ttl=LISTINGS_CACHE_TTL):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached listing search {cache_key}")


def get_cached_dashboard_stats():
    cache_key = make_cache_key(DASHBOARD_STATS_CACHE_PREFIX)
    return cache.get(cache_key), cache_key


def cache_dashboard_stats(cache_key, data, ttl=DASHBOARD_STATS_CACHE_TTL):
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard stats {cache_key}")


def invalidate_listings_cache():
    invalidate_cache_pattern(LISTINGS_CACHE_PREFIX)


def invalidate_dashboard_cache():
    invalidate_cache_pattern(DASHBOARD_STATS_CACHE_PREFIX)
