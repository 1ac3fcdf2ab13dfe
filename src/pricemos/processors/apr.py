"""Staking APR derived from chain inflation and the bonded-token ratio."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any

import requests

from ..clients.chain import ChainQueryClient
from ..concurrency import QueryRunner
from ..constants import (
    OSMOSIS_EPOCHS_PATH,
    OSMOSIS_EPOCH_PROVISIONS_PATH,
    OSMOSIS_MINT_PARAMS_PATH,
    SECONDS_PER_YEAR,
)
from ..domain import ChainProfile
from ..errors import MalformedResponse, NetworkUnavailable
from ..logger import get_logger
from ..units import to_decimal

logger = get_logger(__name__)


def epoch_duration(epochs: list[dict[str, Any]], identifier: str) -> int:
    """Duration in seconds of the epoch named ``identifier`` (0 if absent).

    Durations come as protobuf JSON strings such as ``"86400s"``.
    """
    epoch = next((e for e in epochs if e.get("identifier") == identifier), None)
    if epoch is None:
        return 0
    return int(Decimal(str(epoch["duration"]).rstrip("s")))


def staking_apr(inflation: Decimal, bonded: Decimal, supply: Decimal) -> Decimal:
    """APR = inflation / bonded ratio."""
    if bonded <= 0 or supply <= 0:
        raise ValueError("Bonded tokens and supply must be positive to compute APR")
    return inflation / (bonded / supply)


async def osmosis_apr(
    client: ChainQueryClient, runner: QueryRunner, supply: Decimal, bonded: Decimal
) -> Decimal:
    """Osmosis mints per epoch instead of exposing an inflation rate."""
    params_payload, epochs_payload, provisions_payload = await asyncio.gather(
        runner.run(client.query, OSMOSIS_MINT_PARAMS_PATH),
        runner.run(client.query, OSMOSIS_EPOCHS_PATH),
        runner.run(client.query, OSMOSIS_EPOCH_PROVISIONS_PATH),
    )
    try:
        params = params_payload["params"]
        staking_share = to_decimal(params["distribution_proportions"]["staking"])
        provisions = to_decimal(provisions_payload["epoch_provisions"])
        duration = epoch_duration(epochs_payload["epochs"], params["epoch_identifier"])
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedResponse(f"osmosis: malformed mint payloads: {exc}") from exc

    if duration <= 0:
        raise MalformedResponse("osmosis: mint epoch has no duration")

    yearly_minted = staking_share * provisions * SECONDS_PER_YEAR / duration
    return staking_apr(yearly_minted / supply, bonded, supply)


async def sifchain_apr(url: str, timeout: float) -> Decimal:
    def _fetch() -> Any:
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise NetworkUnavailable(f"sifchain: APR lookup failed: {exc}") from exc

    payload = await asyncio.to_thread(_fetch)
    try:
        return to_decimal(payload["rate"])
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedResponse("sifchain: malformed staking rewards payload") from exc


async def calculate_apr(
    profile: ChainProfile,
    client: ChainQueryClient,
    runner: QueryRunner,
    *,
    sifchain_url: str,
    timeout: float = 10.0,
) -> Decimal:
    """Compute the staking APR of one chain.

    Args:
        profile: Chain to compute the APR for
        client: Query client bound to that chain
        runner: Throttle/retry policy for the chain queries
        sifchain_url: External staking-rewards endpoint used for sifchain
        timeout: Timeout for the sifchain request

    Returns:
        APR as a fraction (0.12 == 12%)
    """
    if profile.chain_id.startswith("sifchain"):
        return await sifchain_apr(sifchain_url, timeout)

    pool, supply_coin = await asyncio.gather(
        runner.run(client.get_staking_pool),
        runner.run(client.get_supply, profile.native_denom),
    )
    supply = to_decimal(supply_coin.amount)
    bonded = pool.bonded_tokens
    logger.debug("%s: bonded=%s supply=%s", profile.name, bonded, supply)

    if profile.chain_id.startswith("osmosis"):
        return await osmosis_apr(client, runner, supply, bonded)

    inflation = await runner.run(client.get_inflation)
    return staking_apr(inflation, bonded, supply)
