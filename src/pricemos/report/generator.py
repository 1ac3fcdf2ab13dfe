from __future__ import annotations

from dataclasses import dataclass, field

from ..domain import CrossChainTotal, PoolPosition
from .encoder import to_jsonable


@dataclass
class BalanceReport:
    """Response body of one balance aggregation."""

    address: str
    balances: CrossChainTotal
    chains: str
    pools: list[PoolPosition] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        """Convert report to the ``{address, balances, chains}`` body."""
        return {
            "address": self.address,
            "balances": to_jsonable(self.balances),
            "chains": self.chains,
        }


def generate_report(
    address: str,
    total: CrossChainTotal,
    chain_names: list[str],
    pools: list[PoolPosition] | None = None,
) -> BalanceReport:
    """Build the balance report for ``address``.

    Args:
        address: Source address as supplied by the caller
        total: Cross-chain totals
        chain_names: Requested chain names, echoed back comma-joined
        pools: Valued pool positions that were folded into ``total``
    """
    return BalanceReport(
        address=address,
        balances=total,
        chains=",".join(chain_names),
        pools=list(pools or []),
    )
