"""AMM market data (listed tokens and pool pairs) for osmosis."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import requests

from ..errors import MalformedResponse
from ..units import to_decimal
from .http import JsonHttpClient


@dataclass(frozen=True)
class ListedToken:
    denom: str
    symbol: str
    exponent: int
    price: Decimal


@dataclass(frozen=True)
class PoolPair:
    pool_id: str
    base_symbol: str
    quote_symbol: str
    liquidity: Decimal

    @property
    def symbol(self) -> str:
        return f"{self.base_symbol}/{self.quote_symbol}"


class MarketClient(JsonHttpClient):
    """Token prices and pool liquidity from the osmosis market data API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        super().__init__("market", base_url, timeout=timeout, session=session)

    async def get_tokens(self) -> dict[str, ListedToken]:
        """Listed tokens keyed by denom."""
        payload = await self.get_json("/tokens/v2/all")
        try:
            return {
                entry["denom"]: ListedToken(
                    denom=entry["denom"],
                    symbol=entry["symbol"],
                    exponent=int(entry["exponent"]),
                    price=_to_price(entry.get("price")),
                )
                for entry in payload
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedResponse("market: malformed token list") from exc

    async def get_pairs(self) -> dict[str, PoolPair]:
        """Pool pairs keyed by pool id (as a string)."""
        payload = await self.get_json("/pairs/v1/summary")
        try:
            return {
                str(entry["pool_id"]): PoolPair(
                    pool_id=str(entry["pool_id"]),
                    base_symbol=entry["base_symbol"],
                    quote_symbol=entry["quote_symbol"],
                    liquidity=to_decimal(entry["liquidity"]),
                )
                for entry in payload["data"]
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedResponse("market: malformed pair summary") from exc


def _to_price(value: Any) -> Decimal:
    return Decimal(0) if value is None else to_decimal(value)
