from __future__ import annotations

from .pool_valuators import POOL_VALUATORS

__all__ = ["POOL_VALUATORS"]
