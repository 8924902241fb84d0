"""Redis-backed permission cache with graceful degradation.

Values are JSON-encoded. Every Redis error is logged and swallowed so an
outage behaves like an always-miss cache instead of failing requests.
"""

import json
import logging
from typing import Any, Optional

import redis
from redis.exceptions import RedisError

from .base import PermissionCache

logger = logging.getLogger(__name__)

# Keys fetched per SCAN round-trip during pattern deletes.
_SCAN_BATCH = 500


class RedisPermissionCache(PermissionCache):
    """PermissionCache on top of a redis-py client."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisPermissionCache":
        """Build a client with short timeouts; the connection is opened lazily."""
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client)

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(key)
        except RedisError as e:
            logger.warning("Cache get error for key %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache value for key %s", key)
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        try:
            self._client.setex(key, ttl_seconds, json.dumps(value))
            return True
        except RedisError as e:
            logger.warning("Cache set error for key %s: %s", key, e)
            return False

    def delete(self, key: str) -> bool:
        try:
            return bool(self._client.delete(key))
        except RedisError as e:
            logger.warning("Cache delete error for key %s: %s", key, e)
            return False

    def delete_pattern(self, pattern: str) -> int:
        deleted = 0
        batch: list[str] = []
        try:
            for key in self._client.scan_iter(match=pattern, count=_SCAN_BATCH):
                batch.append(key)
                if len(batch) >= _SCAN_BATCH:
                    deleted += self._client.delete(*batch)
                    batch.clear()
            if batch:
                deleted += self._client.delete(*batch)
        except RedisError as e:
            logger.warning("Cache invalidation error for pattern %s: %s", pattern, e)
        return deleted

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except RedisError as e:
            logger.warning("Redis unavailable: %s", e)
            return False

    def close(self) -> None:
        try:
            self._client.close()
        except RedisError as e:
            logger.warning("Error closing Redis client: %s", e)
