from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from pricemos.clients.directory import DirectoryClient
from pricemos.errors import ChainUnsupported, NetworkUnavailable
from pricemos.registry import ChainRegistry
from pricemos.settings import PricemosSettings

LISTING = {
    "cosmoshub": {
        "name": "cosmoshub",
        "chain_id": "cosmoshub-4",
        "bech32_prefix": "cosmos",
        "decimals": 6,
        "symbol": "ATOM",
        "coingecko_id": "cosmos",
        "best_apis": {
            "rest": [{"address": "https://rest.cosmoshub.test"}],
            "rpc": [{"address": "https://rpc.cosmoshub.test"}],
        },
    },
    "osmosis": {"name": "osmosis", "chain_id": "osmosis-1"},
}

ASSETS = {
    "cosmoshub": {"assets": [{"base": "uatom", "symbol": "ATOM", "decimals": 6}]},
    "osmosis": {
        "assets": [
            {"base": "uosmo", "symbol": "OSMO", "decimals": 6},
            {"base": "uion", "symbol": "ION", "decimals": 6},
        ]
    },
}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def directory():
    directory = MagicMock(spec=DirectoryClient)
    directory.get_chains = AsyncMock(return_value=LISTING)
    directory.get_chain_data = AsyncMock(return_value={"bech32_prefix": "osmo"})

    async def token_data(name):
        return ASSETS[name]

    directory.get_token_data = AsyncMock(side_effect=token_data)
    return directory


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(runner, directory, clock):
    settings = PricemosSettings(
        query_retries=0,
        chain_profile_ttl=60,
        rest_proxy_url="https://rest.proxy.test/",
        reward_denom_offsets={"osmosis": 12},
    )
    return ChainRegistry(settings, directory, runner, clock=clock)


@pytest.mark.asyncio
async def test_profile_from_listing(registry):
    profile = await registry.get("cosmoshub")

    assert profile.address_prefix == "cosmos"
    assert profile.native_denom == "uatom"
    assert profile.decimal_exponent == 6
    assert profile.rest_endpoint == "https://rest.cosmoshub.test"
    assert profile.coingecko_id == "cosmos"
    assert profile.reward_denom_offset == 0


@pytest.mark.asyncio
async def test_profile_falls_back_to_chain_data_and_proxy(registry, directory):
    profile = await registry.get("osmosis")

    assert profile.address_prefix == "osmo"
    assert profile.native_denom == "uosmo"
    assert profile.rest_endpoint == "https://rest.proxy.test/osmosis"
    assert profile.reward_denom_offset == 12
    directory.get_chain_data.assert_awaited_once_with("osmosis")


@pytest.mark.asyncio
async def test_unknown_chain_is_unsupported(registry):
    with pytest.raises(ChainUnsupported):
        await registry.get("nochain")


@pytest.mark.asyncio
async def test_resolve_keeps_order_and_reports_failures(registry):
    profiles, failures = await registry.resolve(["osmosis", "nochain", "cosmoshub", "osmosis"])

    assert [p.name for p in profiles] == ["osmosis", "cosmoshub"]
    assert list(failures) == ["nochain"]
    assert isinstance(failures["nochain"], ChainUnsupported)


@pytest.mark.asyncio
async def test_resolve_isolates_metadata_failures(registry, directory):
    async def token_data(name):
        if name == "osmosis":
            raise NetworkUnavailable("assetlist down")
        return ASSETS[name]

    directory.get_token_data.side_effect = token_data

    profiles, failures = await registry.resolve(["cosmoshub", "osmosis"])

    assert [p.name for p in profiles] == ["cosmoshub"]
    assert isinstance(failures["osmosis"], NetworkUnavailable)
    assert "assetlist down" in str(failures["osmosis"])


@pytest.mark.asyncio
async def test_directory_outage_is_fatal(registry, directory):
    directory.get_chains.side_effect = NetworkUnavailable("directory down")

    with pytest.raises(NetworkUnavailable):
        await registry.resolve(["cosmoshub"])


@pytest.mark.asyncio
async def test_profiles_cached_until_ttl_expires(registry, directory, clock):
    await registry.get("cosmoshub")
    await registry.get("cosmoshub")
    assert directory.get_chains.await_count == 1
    assert directory.get_token_data.await_count == 1

    clock.now = 61.0
    await registry.get("cosmoshub")

    assert directory.get_chains.await_count == 2
    assert directory.get_token_data.await_count == 2


@pytest.mark.asyncio
async def test_tokens_are_flattened_and_tagged(registry):
    tokens = await registry.tokens()

    assert [(t["chain"], t["base"]) for t in tokens] == [
        ("cosmoshub", "uatom"),
        ("osmosis", "uosmo"),
        ("osmosis", "uion"),
    ]
