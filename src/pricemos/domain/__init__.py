"""Domain models for balance aggregation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


@dataclass(frozen=True)
class ChainProfile:
    """Chain metadata resolved from the chain directory."""

    name: str
    address_prefix: str
    native_denom: str
    decimal_exponent: int
    rpc_endpoint: str
    rest_endpoint: str
    coingecko_id: str | None = None
    chain_id: str = ""
    symbol: str = ""
    reward_denom_offset: int = 0

    def __post_init__(self) -> None:
        if not self.address_prefix:
            raise ValueError(f"Chain '{self.name}' has an empty address prefix")
        if self.decimal_exponent < 0:
            raise ValueError(
                f"Chain '{self.name}' has negative decimal exponent {self.decimal_exponent}"
            )
        if self.reward_denom_offset < 0:
            raise ValueError(
                f"Chain '{self.name}' has negative reward denom offset {self.reward_denom_offset}"
            )


@dataclass(frozen=True)
class DerivedAddress:
    """The source account re-encoded under one chain's prefix."""

    chain_name: str
    address: str
    chain_profile: ChainProfile


@dataclass(frozen=True)
class RawCoin:
    """Coin exactly as returned by a chain query."""

    denom: str
    amount: str  # base units, kept as a string to avoid precision loss


@dataclass(frozen=True)
class DenomTrace:
    path: str
    base_denom: str


@dataclass(frozen=True)
class StakingPool:
    bonded_tokens: Decimal
    not_bonded_tokens: Decimal


@dataclass(frozen=True)
class RawDelegation:
    validator: str
    balance: RawCoin


@dataclass(frozen=True)
class RawReward:
    validator: str
    coins: list[RawCoin]


@dataclass(frozen=True)
class ResolvedCoin:
    """Coin with a canonical base denom and a display-unit amount."""

    base_denom: str
    amount: Decimal
    ibc_denom: str | None = None

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Negative amount for {self.base_denom}: {self.amount}")
        if self.base_denom.startswith("ibc/"):
            raise ValueError(f"Unresolved IBC denom used as base: {self.base_denom}")


@dataclass(frozen=True)
class Delegation:
    validator: str
    amount: Decimal


@dataclass(frozen=True)
class StakedBalance:
    delegations: list[Delegation]
    total: Decimal
    denom: str


@dataclass(frozen=True)
class ValidatorReward:
    validator: str
    amount: Decimal


@dataclass(frozen=True)
class RewardBalance:
    breakdown: list[ValidatorReward]
    total: Decimal
    denom: str


class ChainStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class ChainBalanceSnapshot:
    """Liquid, staked and reward balances of one derived address.

    ``staked`` and ``rewards`` are None when their query failed; the reason is
    kept in ``errors`` under the part name. ``unresolved`` lists IBC denoms
    whose trace lookup failed and were left out of ``liquid``.
    """

    address: str
    liquid: list[ResolvedCoin] = field(default_factory=list)
    staked: StakedBalance | None = None
    rewards: RewardBalance | None = None
    unresolved: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def status(self) -> ChainStatus:
        if len(self.errors) >= 3:
            return ChainStatus.FAILED
        if self.errors or self.unresolved:
            return ChainStatus.PARTIAL
        return ChainStatus.OK


@dataclass(frozen=True)
class ChainResult:
    """Outcome of aggregating one requested chain.

    ``metadata_failed`` tells a chain whose directory metadata could not be
    loaded apart from one that is not in the directory at all.
    """

    name: str
    profile: ChainProfile | None = None
    address: str | None = None
    snapshot: ChainBalanceSnapshot | None = None
    error: str | None = None
    metadata_failed: bool = False

    @property
    def status(self) -> ChainStatus:
        if self.profile is None:
            return ChainStatus.FAILED if self.metadata_failed else ChainStatus.UNSUPPORTED
        if self.snapshot is None:
            return ChainStatus.FAILED
        return self.snapshot.status


@dataclass(frozen=True)
class PoolPosition:
    """Valued AMM pool-share holding."""

    pair_symbol: str
    denom: str
    amount: Decimal
    implied_price: Decimal


@dataclass(frozen=True)
class ChainBreakdown:
    name: str
    address: str | None
    status: ChainStatus
    native: Decimal
    errors: dict[str, str] = field(default_factory=dict)
    unresolved: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CrossChainTotal:
    """Cross-chain balances partitioned by bucket and keyed by denom."""

    total: dict[str, Decimal]
    native: dict[str, Decimal]  # chain name -> native liquid amount
    foreign: dict[str, Decimal]
    staked: dict[str, Decimal]
    rewards: dict[str, Decimal]
    pool_locked: dict[str, Decimal]
    pools: dict[str, Decimal]  # pair symbol -> pool-share units
    chains: list[ChainBreakdown]


@dataclass
class Settled(Generic[K, V]):
    """Outcome of a settle-all fan-out, split by success."""

    succeeded: list[tuple[K, V]] = field(default_factory=list)
    failed: list[tuple[K, BaseException]] = field(default_factory=list)

    @property
    def values(self) -> list[V]:
        return [value for _, value in self.succeeded]


__all__ = [
    "ChainBalanceSnapshot",
    "ChainBreakdown",
    "ChainProfile",
    "ChainResult",
    "ChainStatus",
    "CrossChainTotal",
    "Delegation",
    "DenomTrace",
    "DerivedAddress",
    "PoolPosition",
    "RawCoin",
    "RawDelegation",
    "RawReward",
    "ResolvedCoin",
    "RewardBalance",
    "Settled",
    "StakedBalance",
    "StakingPool",
    "ValidatorReward",
]
