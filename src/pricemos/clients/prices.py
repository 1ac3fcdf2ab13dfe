"""Market price quotes from CoinGecko."""

from __future__ import annotations

from typing import Any

import requests

from ..constants import PRICE_CURRENCIES
from ..errors import PricingUnavailable, QueryError
from ..logger import get_logger
from .http import JsonHttpClient

logger = get_logger(__name__)


class PriceClient(JsonHttpClient):
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        super().__init__("coingecko", base_url, timeout=timeout, session=session)

    async def get_price(self, coingecko_id: str) -> dict[str, Any]:
        """Return ``{usd, cad, eur}`` for one CoinGecko id.

        Raises:
            PricingUnavailable: If the request fails or the id is not quoted.
        """
        try:
            payload = await self.get_json(
                "/simple/price",
                {"ids": coingecko_id, "vs_currencies": ",".join(PRICE_CURRENCIES)},
            )
        except QueryError as exc:
            logger.warning("Price lookup for %s failed: %s", coingecko_id, exc)
            raise PricingUnavailable(f"Price lookup for {coingecko_id} failed") from exc

        quote = payload.get(coingecko_id) if isinstance(payload, dict) else None
        if not quote:
            raise PricingUnavailable(f"No price quoted for {coingecko_id}")
        return quote
