from __future__ import annotations

from .apr import run_apr
from .balance import run_balance
from .pools import run_pools

__all__ = [
    "run_apr",
    "run_balance",
    "run_pools",
]
