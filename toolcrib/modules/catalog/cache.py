"""Effective schema read-through cache backed by Redis."""

import json
import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as redis

from toolcrib.config import settings
from toolcrib.modules.catalog.constants import CACHE_PREFIX

logger = logging.getLogger(__name__)


class EffectiveSchemaCache:
    """Short-TTL cache of resolved effective schemas, keyed by category id.

    A category's effective schema depends on every ancestor, so a mutation
    anywhere in the catalog flushes the whole namespace rather than tracking
    which descendants are affected. Disabled unless ``SCHEMA_CACHE_ENABLED``
    is set, in which case every call goes straight to the factory.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        enabled: bool | None = None,
        ttl: int | None = None,
    ) -> None:
        self._redis = redis_client
        self.enabled = settings.schema_cache_enabled if enabled is None else enabled
        self.ttl = settings.schema_cache_ttl if ttl is None else ttl

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        return self._redis

    def _make_key(self, category_id: uuid.UUID) -> str:
        return f"{CACHE_PREFIX}:{category_id}"

    async def get(self, category_id: uuid.UUID) -> Any | None:
        client = await self._get_redis()
        raw = await client.get(self._make_key(category_id))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, category_id: uuid.UUID, value: Any) -> None:
        client = await self._get_redis()
        await client.set(self._make_key(category_id), json.dumps(value, default=str), ex=self.ttl)

    async def invalidate_all(self) -> int:
        """Delete every cached schema. Returns the number of keys deleted."""
        if not self.enabled:
            return 0
        client = await self._get_redis()
        deleted_count = 0
        async for key in client.scan_iter(match=f"{CACHE_PREFIX}:*", count=100):
            deleted_count += await client.delete(key)
        if deleted_count:
            logger.info("Invalidated %d cached effective schemas", deleted_count)
        return deleted_count

    async def get_or_set(
        self,
        category_id: uuid.UUID,
        factory: Callable[[], Awaitable[dict]],
    ) -> dict:
        """Return the cached schema if present, otherwise compute, cache and return it."""
        if not self.enabled:
            return await factory()
        cached = await self.get(category_id)
        if cached is not None:
            return cached
        value = await factory()
        await self.set(category_id, value)
        return value


_schema_cache = EffectiveSchemaCache()


def get_schema_cache() -> EffectiveSchemaCache:
    """FastAPI dependency returning the process-wide schema cache."""
    return _schema_cache
