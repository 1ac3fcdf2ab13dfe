"""Process-wide cache of chain profiles resolved from the chain directory."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from typing import Any

from .clients.directory import DirectoryClient
from .concurrency import QueryRunner, settle_all
from .domain import ChainProfile
from .errors import ChainUnsupported, MalformedResponse
from .logger import get_logger
from .settings import PricemosSettings

logger = get_logger(__name__)


def _first_api(chain: dict[str, Any], kind: str) -> str | None:
    apis = (chain.get("best_apis") or {}).get(kind) or []
    return apis[0].get("address") if apis else None


class ChainRegistry:
    """Resolve chain names to :class:`ChainProfile` values.

    Profiles and the directory listing are kept for ``chain_profile_ttl``
    seconds. Refreshes are idempotent, so concurrent requests racing on an
    expired entry only cost a duplicate fetch.
    """

    def __init__(
        self,
        settings: PricemosSettings,
        directory: DirectoryClient,
        runner: QueryRunner | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.directory = directory
        self.runner = runner or QueryRunner(settings)
        self._clock = clock
        self._ttl = settings.chain_profile_ttl
        self._listing: tuple[float, dict[str, dict[str, Any]]] | None = None
        self._profiles: dict[str, tuple[float, ChainProfile]] = {}

    def _fresh(self, fetched_at: float) -> bool:
        return self._clock() - fetched_at < self._ttl

    async def listing(self) -> dict[str, dict[str, Any]]:
        """Raw directory entries keyed by chain name."""
        if self._listing is not None and self._fresh(self._listing[0]):
            return self._listing[1]
        chains = await self.runner.run(self.directory.get_chains)
        self._listing = (self._clock(), chains)
        logger.debug("Loaded %d chains from directory", len(chains))
        return chains

    async def get(self, name: str) -> ChainProfile:
        """Resolve one chain.

        Raises:
            ChainUnsupported: If the chain is not in the directory.
        """
        cached = self._profiles.get(name)
        if cached is not None and self._fresh(cached[0]):
            return cached[1]

        chains = await self.listing()
        entry = chains.get(name)
        if entry is None:
            raise ChainUnsupported(name)

        profile = await self._build_profile(name, entry)
        self._profiles[name] = (self._clock(), profile)
        return profile

    async def _build_profile(self, name: str, entry: dict[str, Any]) -> ChainProfile:
        prefix = entry.get("bech32_prefix")
        if not prefix:
            chain_data = await self.runner.run(self.directory.get_chain_data, name)
            prefix = chain_data["bech32_prefix"]

        token_data = await self.runner.run(self.directory.get_token_data, name)
        assets = token_data["assets"]
        native = assets[0] if assets else {}
        native_denom = native.get("base") or entry.get("denom")
        if not native_denom:
            raise MalformedResponse(f"directory: no native denom for '{name}'")

        decimals = entry.get("decimals")
        if decimals is None:
            decimals = native.get("decimals", 6)

        try:
            return ChainProfile(
                name=name,
                address_prefix=prefix,
                native_denom=native_denom,
                decimal_exponent=int(decimals),
                rpc_endpoint=_first_api(entry, "rpc")
                or f"{self.settings.rpc_proxy_url}/{name}",
                rest_endpoint=_first_api(entry, "rest")
                or f"{self.settings.rest_proxy_url}/{name}",
                coingecko_id=entry.get("coingecko_id") or native.get("coingecko_id"),
                chain_id=entry.get("chain_id", ""),
                symbol=entry.get("symbol") or native.get("symbol") or "",
                reward_denom_offset=self.settings.reward_denom_offset_for(name),
            )
        except (TypeError, ValueError) as exc:
            raise MalformedResponse(f"directory: invalid profile for '{name}': {exc}") from exc

    async def resolve(
        self, names: Iterable[str]
    ) -> tuple[list[ChainProfile], dict[str, BaseException]]:
        """Resolve many chains concurrently.

        Returns:
            Tuple of (profiles in requested order, {chain name: exception})
            for chains that are unsupported (``ChainUnsupported``) or whose
            metadata could not be loaded (any other error).
        """
        ordered = list(dict.fromkeys(name for name in names if name))
        await self.listing()
        settled = await settle_all((name, self.get(name)) for name in ordered)

        failures: dict[str, BaseException] = {}
        for name, exc in settled.failed:
            if isinstance(exc, ChainUnsupported):
                logger.warning("Chain '%s' is not in the directory; skipping", name)
            else:
                logger.error("Failed to load chain '%s': %s", name, exc)
            failures[name] = exc

        resolved = dict(settled.succeeded)
        profiles = [resolved[name] for name in ordered if name in resolved]
        return profiles, failures

    async def tokens(self) -> list[dict[str, Any]]:
        """Asset metadata of every known chain, flattened and tagged by chain."""
        chains = await self.listing()
        settled = await settle_all(
            (name, self.runner.run(self.directory.get_token_data, name))
            for name in chains
        )
        for name, exc in settled.failed:
            logger.warning("Token list for '%s' unavailable: %s", name, exc)
        return [
            {**asset, "chain": name}
            for name, token_data in settled.succeeded
            for asset in token_data["assets"]
        ]

    async def close(self) -> None:
        await asyncio.to_thread(self.directory.close)
