"""Resolve IBC hash denoms and scale raw amounts to display units."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..clients.chain import ChainQueryClient
from ..concurrency import settle_all
from ..constants import IBC_DENOM_PATTERN, POOL_SHARE_EXPONENT, POOL_SHARE_PREFIX
from ..domain import RawCoin, ResolvedCoin
from ..logger import get_logger
from ..units import scale_down

logger = get_logger(__name__)


def ibc_hash(denom: str) -> str | None:
    """Return the hash of an ``ibc/<hash>`` denom, or None for any other denom."""
    match = IBC_DENOM_PATTERN.match(denom)
    return match.group("hash") if match else None


def is_pool_share(denom: str) -> bool:
    return denom.startswith(POOL_SHARE_PREFIX)


@dataclass
class ResolvedDenoms:
    coins: list[ResolvedCoin] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # original denom -> reason


class DenomResolver:
    """Turn a chain's raw coins into resolved, decimal-scaled coins.

    Exponent policy:
        - native and other non-IBC denoms use the holding chain's exponent
        - pool-share denoms use 18
        - IBC denoms use ``exponents[base_denom]`` (the origin chain's native
          exponent or a configured override) when known, otherwise the
          holding chain's exponent
    """

    def __init__(
        self,
        client: ChainQueryClient,
        chain_exponent: int,
        exponents: Mapping[str, int] | None = None,
        call: Callable[..., Awaitable[Any]] | None = None,
    ):
        """Initialize the resolver.

        Args:
            client: Query client of the chain holding the coins
            chain_exponent: Decimal exponent of the holding chain
            exponents: Base denom -> exponent lookup for bridged coins
            call: Optional wrapper applied to every trace lookup (throttle/retry)
        """
        self.client = client
        self.chain_exponent = chain_exponent
        self.exponents = dict(exponents or {})
        self._call = call
        self._traces: dict[str, str] = {}

    async def _lookup(self, denom_hash: str) -> str:
        cached = self._traces.get(denom_hash)
        if cached is not None:
            return cached
        if self._call is not None:
            trace = await self._call(self.client.resolve_denom_trace, denom_hash)
        else:
            trace = await self.client.resolve_denom_trace(denom_hash)
        self._traces[denom_hash] = trace.base_denom
        return trace.base_denom

    def exponent_for(self, base_denom: str, bridged: bool) -> int:
        if is_pool_share(base_denom):
            return POOL_SHARE_EXPONENT
        if bridged:
            return self.exponents.get(base_denom, self.chain_exponent)
        return self.chain_exponent

    async def resolve_coin(self, coin: RawCoin) -> ResolvedCoin:
        denom_hash = ibc_hash(coin.denom)
        if denom_hash is None:
            return ResolvedCoin(
                base_denom=coin.denom,
                amount=scale_down(coin.amount, self.exponent_for(coin.denom, False)),
            )

        base_denom = await self._lookup(denom_hash)
        if ibc_hash(base_denom) is not None:
            raise ValueError(f"Denom trace for {coin.denom} resolved to another IBC hash")
        return ResolvedCoin(
            base_denom=base_denom,
            amount=scale_down(coin.amount, self.exponent_for(base_denom, True)),
            ibc_denom=coin.denom,
        )

    async def resolve(self, coins: list[RawCoin]) -> ResolvedDenoms:
        """Resolve all coins concurrently.

        A coin whose trace lookup or amount parsing fails is reported in
        ``failed`` and left out of ``coins``; the rest of the batch is kept.
        """
        settled = await settle_all((coin.denom, self.resolve_coin(coin)) for coin in coins)
        result = ResolvedDenoms(coins=settled.values)
        for denom, exc in settled.failed:
            logger.warning(
                "%s: could not resolve %s: %s", self.client.chain_name, denom, exc
            )
            result.failed[denom] = str(exc)
        return result
