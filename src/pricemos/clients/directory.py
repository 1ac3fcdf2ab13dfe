"""Client for the cosmos.directory chain registry."""

from __future__ import annotations

from typing import Any

import requests

from ..errors import MalformedResponse
from .http import JsonHttpClient


def normalize_asset(asset: dict[str, Any]) -> dict[str, Any]:
    """Flatten a chain-registry asset entry to the fields the service exposes.

    ``decimals`` is the exponent of the display unit, defaulting to 6 when the
    asset declares none.
    """
    display = asset.get("display")
    units = asset.get("denom_units") or []
    display_unit = next((u for u in units if u.get("denom") == display), None)
    decimals = display_unit.get("exponent") if display_unit else None
    logos = asset.get("logo_URIs") or {}
    return {
        "base": asset.get("base"),
        "symbol": asset.get("symbol"),
        "decimals": decimals if decimals is not None else 6,
        "coingecko_id": asset.get("coingecko_id"),
        "logo_uri": logos.get("png") or logos.get("svg"),
    }


class DirectoryClient(JsonHttpClient):
    """Chain metadata, endpoints and token lists from the chain directory."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        super().__init__("directory", base_url, timeout=timeout, session=session)

    async def get_chains(self) -> dict[str, dict[str, Any]]:
        """Return every known chain keyed by chain name."""
        payload = await self.get_json("/")
        try:
            chains = payload["chains"]
            return {chain["name"]: chain for chain in chains}
        except (KeyError, TypeError) as exc:
            raise MalformedResponse("directory: malformed chain listing") from exc

    async def get_chain_data(self, name: str) -> dict[str, Any]:
        payload = await self.get_json(f"/{name}/chain")
        if not isinstance(payload, dict) or not payload.get("bech32_prefix"):
            raise MalformedResponse(f"directory: chain data for '{name}' has no bech32_prefix")
        return payload

    async def get_token_data(self, name: str) -> dict[str, Any]:
        """Return ``{"assets": [{base, symbol, decimals, coingecko_id, logo_uri}]}``."""
        payload = await self.get_json(f"/{name}/assetlist")
        try:
            assets = payload["assets"]
            return {"assets": [normalize_asset(asset) for asset in assets]}
        except (KeyError, TypeError, AttributeError) as exc:
            raise MalformedResponse(f"directory: malformed asset list for '{name}'") from exc
