"""
cache/redis_store.py -- Redis-backed remember-me store.

Same contract as cache.store.RememberStore (set/get/exists/delete), with
expiry delegated to Redis itself via SET ... EX. Values are JSON-encoded so
both backends hand back the same Python types.

The client is the synchronous redis-py client: every caller of this store is
a synchronous request handler, and redis-py's connection pool is thread-safe.

Connection and timeout errors surface as StoreUnavailable("remember"). They
are not retried here; timeouts are bounded by REDIS_SOCKET_TIMEOUT.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import urlparse

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from core.errors import StoreUnavailable

logger = logging.getLogger("loginkeep.cache")

_UNAVAILABLE = (RedisConnectionError, RedisTimeoutError)


def _mask_url(url: str) -> str:
    """Hide the password part of a redis:// URL for logging."""
    parsed = urlparse(url)
    if parsed.password:
        return url.replace(f":{parsed.password}@", ":***@")
    return url


class RedisRememberStore:
    """Remember-me entries in Redis.

    Usage:
        store = RedisRememberStore.from_url("redis://localhost:6379/0")
        store.set("login:remember:<token>", 42, ttl_seconds=604800)
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 5.0) -> RedisRememberStore:
        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            decode_responses=True,
        )
        logger.info("Redis remember store configured: %s", _mask_url(url))
        return cls(client)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        try:
            self._client.set(key, json.dumps(value), ex=ttl_seconds)
        except _UNAVAILABLE as exc:
            logger.error("Redis SET failed: %s", exc)
            raise StoreUnavailable("remember") from exc

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(key)
        except _UNAVAILABLE as exc:
            logger.error("Redis GET failed: %s", exc)
            raise StoreUnavailable("remember") from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            # Written by something other than this store; hand back the raw string.
            return raw

    def exists(self, key: str) -> bool:
        try:
            return self._client.exists(key) > 0
        except _UNAVAILABLE as exc:
            logger.error("Redis EXISTS failed: %s", exc)
            raise StoreUnavailable("remember") from exc

    def delete(self, key: str) -> bool:
        try:
            return self._client.delete(key) > 0
        except _UNAVAILABLE as exc:
            logger.error("Redis DELETE failed: %s", exc)
            raise StoreUnavailable("remember") from exc

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except _UNAVAILABLE:
            return False

    def close(self) -> None:
        self._client.close()
