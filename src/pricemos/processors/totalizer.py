from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from decimal import Decimal

from ..domain import ChainBreakdown, ChainResult, CrossChainTotal, PoolPosition
from .denoms import is_pool_share


def _add(bucket: dict[str, Decimal], key: str, amount: Decimal) -> None:
    bucket[key] = bucket.get(key, Decimal(0)) + amount


def totalize(
    results: list[ChainResult],
    pool_positions: Iterable[PoolPosition] = (),
) -> CrossChainTotal:
    """Merge per-chain results into cross-chain buckets keyed by denom.

    Args:
        results: One entry per requested chain, in request order
        pool_positions: Valued AMM positions, added to ``pools`` and ``total``
            under their pair symbol

    Returns:
        CrossChainTotal whose ``chains`` breakdown preserves ``results`` order.

    Chains without a snapshot (unsupported or failed entirely) contribute
    zero to every bucket and are flagged through their breakdown status.

    A valued position already covers the liquid and locked shares of its
    denom, so liquid shares of that denom are counted once, under the pair
    symbol, and the position amount is what lands in ``pool_locked``.
    """
    positions = list(pool_positions)
    valued_denoms = {position.denom for position in positions}

    native: dict[str, Decimal] = {}
    foreign: dict[str, Decimal] = {}
    staked: dict[str, Decimal] = {}
    rewards: dict[str, Decimal] = {}
    pool_locked: dict[str, Decimal] = {}
    pools: dict[str, Decimal] = {}
    total: defaultdict[str, Decimal] = defaultdict(Decimal)
    chains: list[ChainBreakdown] = []

    for result in results:
        snapshot = result.snapshot
        native_amount = Decimal(0)

        if snapshot is not None and result.profile is not None:
            native_denom = result.profile.native_denom
            for coin in snapshot.liquid:
                if coin.base_denom == native_denom and coin.ibc_denom is None:
                    native_amount += coin.amount
                    total[native_denom] += coin.amount
                elif coin.base_denom in valued_denoms:
                    continue
                elif is_pool_share(coin.base_denom):
                    _add(pool_locked, coin.base_denom, coin.amount)
                    total[coin.base_denom] += coin.amount
                else:
                    _add(foreign, coin.base_denom, coin.amount)
                    total[coin.base_denom] += coin.amount

            if snapshot.staked is not None:
                _add(staked, snapshot.staked.denom, snapshot.staked.total)
                total[snapshot.staked.denom] += snapshot.staked.total
            if snapshot.rewards is not None:
                _add(rewards, snapshot.rewards.denom, snapshot.rewards.total)
                total[snapshot.rewards.denom] += snapshot.rewards.total

        if result.profile is not None:
            native[result.name] = native_amount

        errors = dict(snapshot.errors) if snapshot is not None else {}
        if result.error:
            errors.setdefault("chain", result.error)
        chains.append(
            ChainBreakdown(
                name=result.name,
                address=result.address,
                status=result.status,
                native=native_amount,
                errors=errors,
                unresolved=list(snapshot.unresolved) if snapshot is not None else [],
            )
        )

    for position in positions:
        _add(pool_locked, position.denom, position.amount)
        _add(pools, position.pair_symbol, position.amount)
        total[position.pair_symbol] += position.amount

    return CrossChainTotal(
        total=dict(total),
        native=native,
        foreign=foreign,
        staked=staked,
        rewards=rewards,
        pool_locked=pool_locked,
        pools=pools,
        chains=chains,
    )
