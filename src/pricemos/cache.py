"""Redis-backed response cache used cache-aside by every HTTP route.

Values are stored as JSON strings with a per-key TTL. Writes are idempotent
upserts, so concurrent requests populating the same key need no locking.
"""

from __future__ import annotations

import json
from typing import Any

import redis.asyncio as aioredis

from .logger import get_logger
from .report.encoder import dumps

logger = get_logger(__name__)

CHAINS_KEY = "chains"
TOKENS_KEY = "tokens"


def apr_key(chain: str) -> str:
    return "apr-" + chain


def price_key(coingecko_id: str) -> str:
    return "price-" + coingecko_id


def lp_key(address: str) -> str:
    return "lp-" + address


def balance_key(address: str, chains: str) -> str:
    return address + "?chains=" + chains


def chain_key(name: str) -> str:
    """Per-chain profile entry written by the chains route."""
    return name


class ResponseCache:
    """Async JSON cache on top of Redis.

    Args:
        redis_url: Redis connection URL (e.g. "redis://localhost:6379/0").
        client: Optional pre-configured redis client (for testing).
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        client: aioredis.Redis | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._client: aioredis.Redis | None = client

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if self._client is None:
            self._client = aioredis.from_url(self._redis_url)
        await self._client.ping()
        logger.info("Connected to redis")

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Disconnected from redis")

    def _require_client(self) -> aioredis.Redis:
        if self._client is None:
            raise ConnectionError("Redis not connected")
        return self._client

    async def get_json(self, key: str) -> Any | None:
        """Return the decoded value stored under ``key``, or None on a miss.

        An entry that is not valid JSON is treated as a miss.
        """
        raw = await self._require_client().get(key)
        if raw is None:
            logger.debug("Cache miss: %s", key)
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set_json(self, key: str, ttl: int, value: Any) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        await self._require_client().set(key, dumps(value), ex=ttl)
        logger.debug("Cached %s for %ds", key, ttl)

    async def __aenter__(self) -> "ResponseCache":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()
