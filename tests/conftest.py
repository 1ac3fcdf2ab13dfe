from __future__ import annotations

import logging
from collections.abc import Callable
from unittest.mock import MagicMock

import bech32
import pytest

from pricemos.clients.chain import ChainQueryClient
from pricemos.concurrency import QueryRunner
from pricemos.domain import ChainProfile
from pricemos.settings import PricemosSettings

ACCOUNT_BYTES = bytes(range(1, 21))


def _encode(prefix: str, payload: bytes = ACCOUNT_BYTES) -> str:
    return bech32.bech32_encode(prefix, bech32.convertbits(payload, 8, 5))


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch, tmp_path):
    """Keep developer config files and PRICEMOS_* variables out of tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("PRICEMOS_CONFIG", raising=False)


@pytest.fixture
def encode_address() -> Callable[..., str]:
    return _encode


@pytest.fixture
def source_address() -> str:
    return _encode("cosmos")


@pytest.fixture
def settings() -> PricemosSettings:
    return PricemosSettings(query_retries=0, query_delay=0.0, query_jitter=0.0)


@pytest.fixture
def runner(settings: PricemosSettings) -> QueryRunner:
    return QueryRunner(settings)


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("pricemos.test")


@pytest.fixture
def cosmoshub() -> ChainProfile:
    return ChainProfile(
        name="cosmoshub",
        address_prefix="cosmos",
        native_denom="uatom",
        decimal_exponent=6,
        rpc_endpoint="https://rpc.cosmoshub.test",
        rest_endpoint="https://rest.cosmoshub.test",
        coingecko_id="cosmos",
        chain_id="cosmoshub-4",
        symbol="ATOM",
    )


@pytest.fixture
def osmosis() -> ChainProfile:
    return ChainProfile(
        name="osmosis",
        address_prefix="osmo",
        native_denom="uosmo",
        decimal_exponent=6,
        rpc_endpoint="https://rpc.osmosis.test",
        rest_endpoint="https://rest.osmosis.test",
        coingecko_id="osmosis",
        chain_id="osmosis-1",
        symbol="OSMO",
    )


@pytest.fixture
def make_chain_client() -> Callable[[str], MagicMock]:
    """Chain client double whose async queries default to empty results."""

    def _make(chain_name: str) -> MagicMock:
        client = MagicMock(spec=ChainQueryClient)
        client.chain_name = chain_name
        client.get_all_balances.return_value = []
        client.get_delegations.return_value = []
        client.get_rewards.return_value = []
        client.get_locked_coins.return_value = []
        return client

    return _make
