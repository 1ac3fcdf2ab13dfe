from __future__ import annotations

import asyncio
from decimal import Decimal

from ...clients.chain import ChainQueryClient
from ...clients.market import ListedToken, MarketClient, PoolPair
from ...concurrency import QueryRunner, settle_all
from ...constants import POOL_SHARE_EXPONENT, POOL_SHARE_PREFIX
from ...domain import PoolPosition, RawCoin
from ...errors import PricemosError, PricingUnavailable
from ...logger import get_logger
from ...settings import PricemosSettings
from ...units import scale_down, to_decimal
from .base import BasePoolValuator

logger = get_logger(__name__)


def pool_id_of(denom: str) -> str:
    """``gamm/pool/42`` -> ``42``."""
    return denom[len(POOL_SHARE_PREFIX):]


def implied_share_price(
    held: Decimal, supply: Decimal, liquidity: Decimal, exponent: int = POOL_SHARE_EXPONENT
) -> Decimal:
    """Price per display-unit share derived from the pool's liquidity.

    ``(held / supply) * liquidity`` is the value of the holding; dividing by the
    held amount in display units gives a per-share price. Heuristic only: the
    liquidity figure comes from the market API, not from chain state.
    """
    if supply <= 0:
        raise ValueError("Pool share supply must be positive")
    display_amount = held.scaleb(-exponent)
    if display_amount <= 0:
        raise ValueError("Held amount must be positive")
    value = (held / supply) * liquidity
    return value / display_amount


def merge_share_balances(coins: list[RawCoin]) -> dict[str, Decimal]:
    """Sum pool-share coins by denom; non pool-share coins are dropped."""
    merged: dict[str, Decimal] = {}
    for coin in coins:
        if coin.denom.startswith(POOL_SHARE_PREFIX):
            merged[coin.denom] = merged.get(coin.denom, Decimal(0)) + to_decimal(coin.amount)
    return merged


class OsmosisPoolValuator(BasePoolValuator):
    """Values liquid and locked ``gamm/pool/N`` shares on osmosis."""

    def __init__(
        self,
        config: PricemosSettings,
        runner: QueryRunner,
        market: MarketClient | None = None,
    ):
        super().__init__(config, runner)
        self.market = market or MarketClient(
            config.market_api_url, timeout=config.request_timeout
        )

    @property
    def chain_name(self) -> str:
        return "osmosis"

    async def _position(
        self,
        denom: str,
        held: Decimal,
        tokens: dict[str, ListedToken],
        pairs: dict[str, PoolPair],
        client: ChainQueryClient,
    ) -> PoolPosition:
        listed = tokens.get(denom)
        if listed is not None:
            return PoolPosition(
                pair_symbol=listed.symbol,
                denom=denom,
                amount=held.scaleb(-listed.exponent),
                implied_price=listed.price,
            )

        pair = pairs.get(pool_id_of(denom))
        if pair is None:
            raise PricingUnavailable(f"No market pair for {denom}")
        supply_coin = await self.runner.run(client.get_supply, denom)
        supply = to_decimal(supply_coin.amount)
        return PoolPosition(
            pair_symbol=pair.symbol,
            denom=denom,
            amount=scale_down(held, POOL_SHARE_EXPONENT),
            implied_price=implied_share_price(held, supply, pair.liquidity),
        )

    async def _value(self, address: str, client: ChainQueryClient) -> list[PoolPosition]:
        try:
            liquid, locked, tokens, pairs = await asyncio.gather(
                self.runner.run(client.get_all_balances, address),
                self.runner.run(client.get_locked_coins, address),
                self.runner.run(self.market.get_tokens),
                self.runner.run(self.market.get_pairs),
            )
            shares = merge_share_balances([*liquid, *locked])
        except (PricemosError, ValueError) as exc:
            raise PricingUnavailable(f"Pool market data unavailable: {exc}") from exc

        settled = await settle_all(
            (denom, self._position(denom, held, tokens, pairs, client))
            for denom, held in shares.items()
            if held > 0
        )
        for denom, exc in settled.failed:
            logger.warning("Could not value pool share %s: %s", denom, exc)
        return settled.values

    async def value_positions(
        self, address: str, client: ChainQueryClient
    ) -> list[PoolPosition]:
        try:
            positions = await self._value(address, client)
        except PricingUnavailable as exc:
            logger.warning("Pool valuation for %s degraded to empty: %s", address, exc)
            return []
        logger.debug("Valued %d pool positions for %s", len(positions), address)
        return positions
