from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from pricemos.adapters.pool_valuators import (
    POOL_VALUATORS,
    OsmosisPoolValuator,
    get_valuator_class,
)
from pricemos.adapters.pool_valuators.osmosis import implied_share_price, merge_share_balances
from pricemos.clients.market import ListedToken, MarketClient, PoolPair
from pricemos.domain import RawCoin
from pricemos.errors import NetworkUnavailable

ONE_SHARE = 10**18


@pytest.fixture
def market():
    market = MagicMock(spec=MarketClient)
    market.get_tokens = AsyncMock(return_value={})
    market.get_pairs = AsyncMock(
        return_value={"1": PoolPair("1", "ATOM", "OSMO", Decimal("1000"))}
    )
    return market


@pytest.fixture
def valuator(settings, runner, market):
    return OsmosisPoolValuator(settings, runner, market=market)


def test_registry():
    assert POOL_VALUATORS == {"osmosis": OsmosisPoolValuator}
    assert get_valuator_class("Osmosis") is OsmosisPoolValuator
    with pytest.raises(ValueError, match="No pool valuator"):
        get_valuator_class("crescent")


def test_implied_share_price():
    """Half a share of a 100-share pool worth 1000 is worth 5, i.e. 10 per share."""
    held = Decimal(ONE_SHARE // 2)
    supply = Decimal(100 * ONE_SHARE)

    assert implied_share_price(held, supply, Decimal(1000)) == Decimal(10)


def test_implied_share_price_rejects_empty_supply():
    with pytest.raises(ValueError):
        implied_share_price(Decimal(1), Decimal(0), Decimal(1000))


def test_merge_share_balances_sums_liquid_and_locked():
    merged = merge_share_balances(
        [
            RawCoin("gamm/pool/1", "10"),
            RawCoin("uosmo", "5"),
            RawCoin("gamm/pool/1", "15"),
        ]
    )

    assert merged == {"gamm/pool/1": Decimal(25)}


@pytest.mark.asyncio
async def test_values_locked_shares_from_pool_liquidity(valuator, make_chain_client):
    client = make_chain_client("osmosis")
    client.get_locked_coins.return_value = [RawCoin("gamm/pool/1", str(ONE_SHARE // 2))]
    client.get_all_balances.return_value = [RawCoin("uosmo", "1000000")]
    client.get_supply.return_value = RawCoin("gamm/pool/1", str(100 * ONE_SHARE))

    positions = await valuator.value_positions("osmo1abc", client)

    [position] = positions
    assert position.pair_symbol == "ATOM/OSMO"
    assert position.denom == "gamm/pool/1"
    assert position.amount == Decimal("0.5")
    assert position.implied_price == Decimal(10)
    client.get_supply.assert_awaited_once_with("gamm/pool/1")


@pytest.mark.asyncio
async def test_listed_share_uses_quoted_price(valuator, market, make_chain_client):
    market.get_tokens.return_value = {
        "gamm/pool/1": ListedToken("gamm/pool/1", "GAMM-1", 18, Decimal("7.5"))
    }
    client = make_chain_client("osmosis")
    client.get_all_balances.return_value = [RawCoin("gamm/pool/1", str(2 * ONE_SHARE))]

    [position] = await valuator.value_positions("osmo1abc", client)

    assert position.pair_symbol == "GAMM-1"
    assert position.amount == Decimal(2)
    assert position.implied_price == Decimal("7.5")
    client.get_supply.assert_not_awaited()


@pytest.mark.asyncio
async def test_share_without_pair_is_skipped(valuator, make_chain_client):
    client = make_chain_client("osmosis")
    client.get_locked_coins.return_value = [
        RawCoin("gamm/pool/1", str(ONE_SHARE)),
        RawCoin("gamm/pool/999", str(ONE_SHARE)),
    ]
    client.get_supply.return_value = RawCoin("gamm/pool/1", str(10 * ONE_SHARE))

    positions = await valuator.value_positions("osmo1abc", client)

    assert [p.denom for p in positions] == ["gamm/pool/1"]


@pytest.mark.asyncio
async def test_market_outage_degrades_to_empty(valuator, market, make_chain_client):
    market.get_pairs.side_effect = NetworkUnavailable("market: HTTP 503", 503)
    client = make_chain_client("osmosis")
    client.get_locked_coins.return_value = [RawCoin("gamm/pool/1", str(ONE_SHARE))]

    assert await valuator.value_positions("osmo1abc", client) == []


@pytest.mark.asyncio
async def test_lockup_outage_degrades_to_empty(valuator, make_chain_client):
    client = make_chain_client("osmosis")
    client.get_locked_coins.side_effect = NetworkUnavailable("lockup down")

    assert await valuator.value_positions("osmo1abc", client) == []


def test_chain_name(valuator):
    assert valuator.chain_name == "osmosis"
