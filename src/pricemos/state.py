"""Application state container."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .cache import ResponseCache
from .clients.directory import DirectoryClient
from .clients.prices import PriceClient
from .concurrency import QueryRunner
from .registry import ChainRegistry
from .settings import PricemosSettings


@dataclass
class AppState:
    """Container for process-wide state and dependencies.

    Created once on startup and passed to every request to avoid module-level
    clients. ``cache`` is None when running without Redis (CLI one-shots).
    """

    settings: PricemosSettings
    logger: logging.Logger
    registry: ChainRegistry
    prices: PriceClient
    runner: QueryRunner
    cache: ResponseCache | None = None

    @classmethod
    def create(
        cls,
        settings: PricemosSettings,
        logger: logging.Logger,
        *,
        with_cache: bool = True,
    ) -> "AppState":
        runner = QueryRunner(settings)
        directory = DirectoryClient(settings.directory_url, timeout=settings.request_timeout)
        return cls(
            settings=settings,
            logger=logger,
            registry=ChainRegistry(settings, directory, runner),
            prices=PriceClient(settings.price_api_url, timeout=settings.request_timeout),
            runner=runner,
            cache=ResponseCache(settings.redis_url) if with_cache else None,
        )

    @property
    def cache_required(self) -> ResponseCache:
        if self.cache is None:
            raise RuntimeError(
                "Response cache has not been set. Ensure AppState was created with a cache."
            )
        return self.cache

    async def startup(self) -> None:
        if self.cache is not None:
            await self.cache.connect()
        self.logger.info("Application state initialized")

    async def close(self) -> None:
        await self.registry.close()
        await asyncio.to_thread(self.prices.close)
        if self.cache is not None:
            await self.cache.disconnect()
        self.logger.info("Application state closed")
