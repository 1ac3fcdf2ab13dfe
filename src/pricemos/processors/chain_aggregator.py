from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from ..clients.chain import ChainQueryClient
from ..concurrency import QueryRunner, settle_all
from ..domain import (
    ChainBalanceSnapshot,
    Delegation,
    DerivedAddress,
    RawReward,
    RewardBalance,
    StakedBalance,
    ValidatorReward,
)
from ..logger import get_logger
from ..units import scale_down
from .denoms import DenomResolver, ResolvedDenoms

logger = get_logger(__name__)

LIQUID = "liquid"
STAKED = "staked"
REWARDS = "rewards"


def reward_amount(reward: RawReward, decimals: int) -> Decimal:
    """Amount of the first reward coin of one validator entry (0 when empty)."""
    if not reward.coins:
        return Decimal(0)
    return scale_down(reward.coins[0].amount, decimals)


class ChainAggregator:
    """Fetch and reduce liquid, staked and reward balances for one address.

    The three queries run concurrently and fail independently: a failed part
    is recorded in ``snapshot.errors`` while the others are still reported.
    """

    def __init__(self, runner: QueryRunner, exponents: Mapping[str, int] | None = None):
        """Initialize the aggregator.

        Args:
            runner: Throttle/retry policy applied to every chain query
            exponents: Base denom -> exponent lookup for bridged coins
        """
        self.runner = runner
        self.exponents = dict(exponents or {})

    async def fetch_liquid(
        self, derived: DerivedAddress, client: ChainQueryClient
    ) -> ResolvedDenoms:
        coins = await self.runner.run(client.get_all_balances, derived.address)
        resolver = DenomResolver(
            client,
            derived.chain_profile.decimal_exponent,
            self.exponents,
            call=self.runner.run,
        )
        return await resolver.resolve(coins)

    async def fetch_staked(
        self, derived: DerivedAddress, client: ChainQueryClient
    ) -> StakedBalance:
        profile = derived.chain_profile
        raw = await self.runner.run(client.get_delegations, derived.address)
        delegations = [
            Delegation(
                validator=entry.validator,
                amount=scale_down(entry.balance.amount, profile.decimal_exponent),
            )
            for entry in raw
        ]
        total = sum((d.amount for d in delegations), Decimal(0))
        return StakedBalance(
            delegations=delegations, total=total, denom=profile.native_denom
        )

    async def fetch_rewards(
        self, derived: DerivedAddress, client: ChainQueryClient
    ) -> RewardBalance:
        profile = derived.chain_profile
        decimals = profile.decimal_exponent + profile.reward_denom_offset
        raw = await self.runner.run(client.get_rewards, derived.address)
        breakdown = [
            ValidatorReward(validator=entry.validator, amount=reward_amount(entry, decimals))
            for entry in raw
        ]
        total = sum((r.amount for r in breakdown), Decimal(0))
        return RewardBalance(breakdown=breakdown, total=total, denom=profile.native_denom)

    async def aggregate(
        self, derived: DerivedAddress, client: ChainQueryClient
    ) -> ChainBalanceSnapshot:
        settled = await settle_all(
            [
                (LIQUID, self.fetch_liquid(derived, client)),
                (STAKED, self.fetch_staked(derived, client)),
                (REWARDS, self.fetch_rewards(derived, client)),
            ]
        )
        parts = dict(settled.succeeded)

        errors: dict[str, str] = {}
        for part, exc in settled.failed:
            logger.warning(
                "%s: %s query failed for %s: %s",
                derived.chain_name,
                part,
                derived.address,
                exc,
            )
            errors[part] = str(exc) or type(exc).__name__

        liquid: ResolvedDenoms = parts.get(LIQUID) or ResolvedDenoms()
        snapshot = ChainBalanceSnapshot(
            address=derived.address,
            liquid=liquid.coins,
            staked=parts.get(STAKED),
            rewards=parts.get(REWARDS),
            unresolved=list(liquid.failed),
            errors=errors,
        )
        logger.debug(
            "%s: %d liquid denoms, status=%s",
            derived.chain_name,
            len(snapshot.liquid),
            snapshot.status.value,
        )
        return snapshot
