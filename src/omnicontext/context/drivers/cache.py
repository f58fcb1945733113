"""Redis-backed driver."""

from __future__ import annotations

import json
import logging

from opentelemetry.trace import SpanKind
from redis.asyncio import Redis
from redis.exceptions import RedisError

from omnicontext.context.drivers.base import Records, StorageDriver
from omnicontext.context.identity import SessionIdentity
from omnicontext.exceptions import DriverConfigurationError, StorageReadError
from omnicontext.tracing import CustomSpanKinds, trace_operation

logger = logging.getLogger(__name__)


class CacheDriver(StorageDriver):
    """Stores records as one JSON string per key in Redis, with an optional TTL.

    A cache that cannot be reached reads as a miss so the next driver is
    consulted. An entry that is not a JSON array raises StorageReadError.
    """

    driver_name = "cache"

    def __init__(
        self,
        client: Redis | None = None,
        *,
        url: str | None = None,
        ttl: int | None = None,
        prefix: str = "omnicontext:",
    ):
        if client is None:
            if not url:
                raise DriverConfigurationError("CacheDriver needs a Redis client or url")
            client = Redis.from_url(url, decode_responses=True)
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    def cache_key(self, identity: SessionIdentity) -> str:
        return f"{self.prefix}{identity.get_key()}"

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.CACHE, category="storage")
    async def read(self, identity: SessionIdentity) -> Records | None:
        key = self.cache_key(identity)
        try:
            raw = await self.client.get(key)
        except RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            data = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
        except ValueError as exc:
            raise StorageReadError("Corrupt cache entry", details=f"key={key}, error={exc}") from exc
        if not isinstance(data, list):
            raise StorageReadError("Cache entry is not a JSON array", details=f"key={key}")
        return data

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.CACHE, category="storage")
    async def write(self, identity: SessionIdentity, data: Records) -> bool:
        key = self.cache_key(identity)
        try:
            await self.client.set(key, json.dumps(data), ex=self.ttl)
        except (RedisError, TypeError, ValueError) as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
            return False
        return True

    @trace_operation(kind=SpanKind.CLIENT, open_inference_kind=CustomSpanKinds.CACHE, category="storage")
    async def remove(self, identity: SessionIdentity) -> bool:
        key = self.cache_key(identity)
        try:
            await self.client.delete(key)
        except RedisError as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)
            return False
        return True

    async def close(self) -> None:
        await self.client.aclose()


__all__ = ["CacheDriver"]
