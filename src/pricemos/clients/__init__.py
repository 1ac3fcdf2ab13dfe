from __future__ import annotations

from .chain import ChainQueryClient
from .directory import DirectoryClient
from .market import MarketClient
from .prices import PriceClient

__all__ = [
    "ChainQueryClient",
    "DirectoryClient",
    "MarketClient",
    "PriceClient",
]
