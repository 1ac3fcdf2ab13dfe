from __future__ import annotations

from abc import ABC, abstractmethod

from ...clients.chain import ChainQueryClient
from ...concurrency import QueryRunner
from ...domain import PoolPosition
from ...settings import PricemosSettings


class BasePoolValuator(ABC):
    """Abstract base class for AMM pool-share valuators."""

    def __init__(self, config: PricemosSettings, runner: QueryRunner):
        """Initialize the valuator with configuration.

        Args:
            config: Service configuration
            runner: Throttle/retry policy for upstream queries
        """
        self.config = config
        self.runner = runner

    @property
    @abstractmethod
    def chain_name(self) -> str:
        """Return the name of the AMM-hosting chain."""
        ...

    @abstractmethod
    async def value_positions(
        self, address: str, client: ChainQueryClient
    ) -> list[PoolPosition]:
        """Value the pool shares held by ``address`` on this chain.

        Must never raise: pricing failures degrade to an empty list.
        """
        ...
