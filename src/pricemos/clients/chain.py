"""Read-only query client for one Cosmos chain's REST gateway."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import requests

from ..constants import (
    BANK_BALANCES_PATH,
    BANK_SUPPLY_PATH,
    DISTRIBUTION_REWARDS_PATH,
    IBC_DENOM_PATH,
    IBC_DENOM_TRACE_PATH,
    MINT_INFLATION_PATH,
    OSMOSIS_LOCKED_COINS_PATH,
    STAKING_DELEGATIONS_PATH,
    STAKING_POOL_PATH,
)
from ..domain import DenomTrace, RawCoin, RawDelegation, RawReward, StakingPool
from ..errors import MalformedResponse, NetworkUnavailable
from ..units import to_decimal
from .http import JsonHttpClient

# Statuses that mean "route not served by this node", used to pick the
# legacy or current IBC denom route.
_ROUTE_MISSING_STATUSES = {404, 501}


def _parse_coin(payload: Any) -> RawCoin:
    try:
        denom = payload["denom"]
        amount = str(payload["amount"])
    except (KeyError, TypeError) as exc:
        raise MalformedResponse(f"Coin payload missing fields: {payload!r}") from exc
    if not isinstance(denom, str) or not denom:
        raise MalformedResponse(f"Coin has an invalid denom: {payload!r}")
    return RawCoin(denom=denom, amount=amount)


def _parse_decimal(value: Any, field: str) -> Decimal:
    try:
        return to_decimal(value)
    except (ValueError, TypeError) as exc:
        raise MalformedResponse(f"Field '{field}' is not a valid amount: {value!r}") from exc


class ChainQueryClient(JsonHttpClient):
    """Typed read operations against one chain endpoint.

    Each call is one HTTP round trip with a bounded timeout. The client never
    retries; see :class:`pricemos.concurrency.QueryRunner` for that.
    """

    def __init__(
        self,
        chain_name: str,
        rest_endpoint: str,
        *,
        timeout: float = 10.0,
        pagination_limit: int = 200,
        session: requests.Session | None = None,
    ):
        """Initialize the client.

        Args:
            chain_name: Chain name used in log and error messages
            rest_endpoint: Base URL of the chain's REST gateway
            timeout: Per-request timeout in seconds
            pagination_limit: Page size for paginated list queries
            session: Optional pre-configured session (for testing)
        """
        super().__init__(chain_name, rest_endpoint, timeout=timeout, session=session)
        self.chain_name = chain_name
        self.pagination_limit = pagination_limit

    async def query(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a raw JSON payload from the chain's REST gateway."""
        return await self.get_json(path, params)

    async def _query_paginated(self, path: str, items_key: str) -> list[Any]:
        items: list[Any] = []
        next_key: str | None = None
        while True:
            params: dict[str, Any] = {"pagination.limit": self.pagination_limit}
            if next_key:
                params["pagination.key"] = next_key
            payload = await self.query(path, params)
            try:
                page = payload[items_key]
            except (KeyError, TypeError) as exc:
                raise MalformedResponse(
                    f"{self.chain_name}: '{items_key}' missing from {path}"
                ) from exc
            if not isinstance(page, list):
                raise MalformedResponse(
                    f"{self.chain_name}: '{items_key}' is not a list on {path}"
                )
            items.extend(page)
            pagination = payload.get("pagination") or {}
            next_key = pagination.get("next_key")
            if not next_key:
                return items

    async def get_all_balances(self, address: str) -> list[RawCoin]:
        balances = await self._query_paginated(
            BANK_BALANCES_PATH.format(address=address), "balances"
        )
        return [_parse_coin(coin) for coin in balances]

    async def get_delegations(self, address: str) -> list[RawDelegation]:
        responses = await self._query_paginated(
            STAKING_DELEGATIONS_PATH.format(address=address), "delegation_responses"
        )
        delegations: list[RawDelegation] = []
        for entry in responses:
            try:
                validator = entry["delegation"]["validator_address"]
                balance = entry["balance"]
            except (KeyError, TypeError) as exc:
                raise MalformedResponse(
                    f"{self.chain_name}: malformed delegation entry {entry!r}"
                ) from exc
            delegations.append(
                RawDelegation(validator=validator, balance=_parse_coin(balance))
            )
        return delegations

    async def get_rewards(self, address: str) -> list[RawReward]:
        payload = await self.query(DISTRIBUTION_REWARDS_PATH.format(address=address))
        try:
            entries = payload["rewards"] or []
            return [
                RawReward(
                    validator=entry["validator_address"],
                    coins=[_parse_coin(coin) for coin in entry.get("reward") or []],
                )
                for entry in entries
            ]
        except (KeyError, TypeError) as exc:
            raise MalformedResponse(
                f"{self.chain_name}: malformed rewards payload"
            ) from exc

    async def resolve_denom_trace(self, denom_hash: str) -> DenomTrace:
        """Resolve an IBC hash to its transfer path and base denom.

        Tries the ``denom_traces`` route first and falls back to the
        ``denoms`` route served by newer ibc-go versions.
        """
        try:
            payload = await self.query(IBC_DENOM_TRACE_PATH.format(hash=denom_hash))
        except NetworkUnavailable as exc:
            if exc.status_code not in _ROUTE_MISSING_STATUSES:
                raise
            return await self._resolve_denom(denom_hash)

        try:
            trace = payload["denom_trace"]
            base_denom = trace["base_denom"]
            path = trace.get("path", "")
        except (KeyError, TypeError) as exc:
            raise MalformedResponse(
                f"{self.chain_name}: malformed denom trace for {denom_hash}"
            ) from exc
        if not base_denom:
            raise MalformedResponse(
                f"{self.chain_name}: empty base denom for {denom_hash}"
            )
        return DenomTrace(path=path, base_denom=base_denom)

    async def _resolve_denom(self, denom_hash: str) -> DenomTrace:
        payload = await self.query(IBC_DENOM_PATH.format(hash=denom_hash))
        try:
            denom = payload["denom"]
            base_denom = denom["base"]
            hops = denom.get("trace") or []
            path = "/".join(f"{hop['port_id']}/{hop['channel_id']}" for hop in hops)
        except (KeyError, TypeError) as exc:
            raise MalformedResponse(
                f"{self.chain_name}: malformed denom for {denom_hash}"
            ) from exc
        if not base_denom:
            raise MalformedResponse(
                f"{self.chain_name}: empty base denom for {denom_hash}"
            )
        return DenomTrace(path=path, base_denom=base_denom)

    async def get_supply(self, denom: str) -> RawCoin:
        payload = await self.query(BANK_SUPPLY_PATH, {"denom": denom})
        try:
            return _parse_coin(payload["amount"])
        except (KeyError, TypeError) as exc:
            raise MalformedResponse(
                f"{self.chain_name}: malformed supply for {denom}"
            ) from exc

    async def get_staking_pool(self) -> StakingPool:
        payload = await self.query(STAKING_POOL_PATH)
        try:
            pool = payload["pool"]
            return StakingPool(
                bonded_tokens=_parse_decimal(pool["bonded_tokens"], "bonded_tokens"),
                not_bonded_tokens=_parse_decimal(
                    pool["not_bonded_tokens"], "not_bonded_tokens"
                ),
            )
        except (KeyError, TypeError) as exc:
            raise MalformedResponse(
                f"{self.chain_name}: malformed staking pool"
            ) from exc

    async def get_inflation(self) -> Decimal:
        payload = await self.query(MINT_INFLATION_PATH)
        try:
            return _parse_decimal(payload["inflation"], "inflation")
        except (KeyError, TypeError) as exc:
            raise MalformedResponse(f"{self.chain_name}: malformed inflation") from exc

    async def get_locked_coins(self, address: str) -> list[RawCoin]:
        """Coins locked in the osmosis lockup module (bonded pool shares)."""
        payload = await self.query(OSMOSIS_LOCKED_COINS_PATH.format(address=address))
        try:
            return [_parse_coin(coin) for coin in payload["coins"] or []]
        except (KeyError, TypeError) as exc:
            raise MalformedResponse(
                f"{self.chain_name}: malformed locked coins payload"
            ) from exc
