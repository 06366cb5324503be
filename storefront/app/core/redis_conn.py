# storefront/app/core/redis_conn.py
from __future__ import annotations

from typing import Dict

from redis import Redis as SyncRedis
from redis.exceptions import RedisError

# One client per URL; redis-py pools connections internally.
_clients: Dict[str, SyncRedis] = {}


def get_sync_redis(url: str) -> SyncRedis:
    """
    Return a shared synchronous Redis client for `url`.
    """
    client = _clients.get(url)
    if client is None:
        client = SyncRedis.from_url(url, decode_responses=True)
        _clients[url] = client
    return client


def ping(url: str) -> bool:
    """
    Lightweight sync ping for health checks.
    """
    try:
        return bool(get_sync_redis(url).ping())
    except RedisError:
        return False
