from __future__ import annotations

from .apr import calculate_apr
from .chain_aggregator import ChainAggregator
from .denoms import DenomResolver, ResolvedDenoms, ibc_hash, is_pool_share
from .totalizer import totalize

__all__ = [
    "ChainAggregator",
    "DenomResolver",
    "ResolvedDenoms",
    "calculate_apr",
    "ibc_hash",
    "is_pool_share",
    "totalize",
]
