"""
Read-through Redis cache for the resource read paths.

Redis is an optimisation only: any Redis failure is logged and treated as a
cache miss (on reads) or skipped (on writes and invalidation).
"""
import json
import logging

from redis import Redis
from redis.exceptions import RedisError

from .config import settings

logger = logging.getLogger("booking_service")

DISCOUNT_LIST_PREFIX = "discounts:list"
ROOM_LIST_PREFIX = "rooms:list"
HOTEL_LIST_PREFIX = "hotels:list"


def discount_key(discount_id: int) -> str:
    return f"discount_{discount_id}"


def room_key(room_id: int) -> str:
    return f"room_{room_id}"


def hotel_key(hotel_id: int) -> str:
    return f"hotel_{hotel_id}"


def list_key(prefix: str, skip: int, limit: int) -> str:
    return f"{prefix}:skip:{skip}:limit:{limit}"


def get_cached(redis_client: Redis, key: str):
    try:
        cached = redis_client.get(key)
    except RedisError as e:
        logger.error(f"Failed to read cache key {key}: {e}")
        return None
    if cached:
        return json.loads(cached)
    return None


def set_cached(redis_client: Redis, key: str, data) -> None:
    try:
        # default=str handles datetimes and Decimals
        redis_client.set(key, json.dumps(data, default=str), ex=settings.CACHE_TTL_SECONDS)
    except RedisError as e:
        logger.error(f"Failed to write cache key {key}: {e}")


def invalidate(redis_client: Redis, *keys: str, prefixes: tuple[str, ...] = ()) -> None:
    """Deletes the given keys and every key starting with one of the prefixes."""
    try:
        to_delete = list(keys)
        for prefix in prefixes:
            to_delete.extend(redis_client.scan_iter(match=f"{prefix}*"))
        if to_delete:
            redis_client.delete(*to_delete)
    except RedisError as e:
        logger.error(f"Failed to invalidate Redis cache: {e}")


def invalidate_discount(redis_client: Redis, discount_id: int | None = None) -> None:
    keys = (discount_key(discount_id),) if discount_id is not None else ()
    invalidate(redis_client, *keys, prefixes=(DISCOUNT_LIST_PREFIX,))
