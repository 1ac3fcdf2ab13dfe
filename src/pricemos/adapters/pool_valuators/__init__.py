from __future__ import annotations

from .base import BasePoolValuator
from .osmosis import OsmosisPoolValuator

POOL_VALUATORS: dict[str, type[BasePoolValuator]] = {
    "osmosis": OsmosisPoolValuator,
}


def get_valuator_class(chain_name: str) -> type[BasePoolValuator]:
    """Get pool valuator class by AMM chain name.

    Args:
        chain_name: Name of the AMM-hosting chain (case-insensitive)

    Returns:
        Valuator class

    Raises:
        ValueError: If no valuator exists for the chain
    """
    chain_name_normalized = chain_name.lower()
    if chain_name_normalized not in POOL_VALUATORS:
        raise ValueError(
            f"No pool valuator for chain '{chain_name}'. "
            f"Available: {', '.join(POOL_VALUATORS.keys())}"
        )
    return POOL_VALUATORS[chain_name_normalized]


__all__ = [
    "POOL_VALUATORS",
    "BasePoolValuator",
    "OsmosisPoolValuator",
    "get_valuator_class",
]
