from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from pricemos.clients.chain import ChainQueryClient
from pricemos.domain import DenomTrace, RawCoin
from pricemos.errors import MalformedResponse, NetworkUnavailable, QueryTimeout


def _response(payload=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return ChainQueryClient(
        "cosmoshub", "https://rest.test/", timeout=3.0, pagination_limit=2, session=session
    )


@pytest.mark.asyncio
async def test_balances_follow_pagination(client, session):
    session.get.side_effect = [
        _response(
            {
                "balances": [{"denom": "uatom", "amount": "10"}, {"denom": "ibc/AB", "amount": "5"}],
                "pagination": {"next_key": "NEXT"},
            }
        ),
        _response(
            {
                "balances": [{"denom": "uosmo", "amount": "7"}],
                "pagination": {"next_key": None},
            }
        ),
    ]

    coins = await client.get_all_balances("cosmos1xyz")

    assert coins == [
        RawCoin("uatom", "10"),
        RawCoin("ibc/AB", "5"),
        RawCoin("uosmo", "7"),
    ]
    first, second = session.get.call_args_list
    assert first.args[0] == "https://rest.test/cosmos/bank/v1beta1/balances/cosmos1xyz"
    assert first.kwargs["params"] == {"pagination.limit": 2}
    assert first.kwargs["timeout"] == 3.0
    assert second.kwargs["params"]["pagination.key"] == "NEXT"


@pytest.mark.asyncio
async def test_timeout_maps_to_query_timeout(client, session):
    session.get.side_effect = requests.exceptions.Timeout("slow")

    with pytest.raises(QueryTimeout):
        await client.get_all_balances("cosmos1xyz")


@pytest.mark.asyncio
async def test_connection_error_maps_to_network_unavailable(client, session):
    session.get.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(NetworkUnavailable) as exc_info:
        await client.get_inflation()

    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_error_status_maps_to_network_unavailable(client, session):
    session.get.return_value = _response({}, status_code=503)

    with pytest.raises(NetworkUnavailable) as exc_info:
        await client.get_staking_pool()

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_non_json_body_is_malformed(client, session):
    response = _response()
    response.json.side_effect = ValueError("no json")
    session.get.return_value = response

    with pytest.raises(MalformedResponse):
        await client.get_inflation()


@pytest.mark.asyncio
async def test_missing_fields_are_malformed(client, session):
    session.get.return_value = _response(
        {"delegation_responses": [{"balance": {"denom": "uatom", "amount": "1"}}]}
    )

    with pytest.raises(MalformedResponse):
        await client.get_delegations("cosmos1xyz")


@pytest.mark.asyncio
async def test_delegations_and_rewards_are_parsed(client, session):
    session.get.side_effect = [
        _response(
            {
                "delegation_responses": [
                    {
                        "delegation": {"validator_address": "cosmosvaloper1a"},
                        "balance": {"denom": "uatom", "amount": "2000000"},
                    }
                ],
                "pagination": {},
            }
        ),
        _response(
            {
                "rewards": [
                    {
                        "validator_address": "cosmosvaloper1a",
                        "reward": [{"denom": "uatom", "amount": "1500.250000000000000000"}],
                    },
                    {"validator_address": "cosmosvaloper1b", "reward": []},
                ]
            }
        ),
    ]

    delegations = await client.get_delegations("cosmos1xyz")
    rewards = await client.get_rewards("cosmos1xyz")

    assert delegations[0].validator == "cosmosvaloper1a"
    assert delegations[0].balance == RawCoin("uatom", "2000000")
    assert rewards[0].coins == [RawCoin("uatom", "1500.250000000000000000")]
    assert rewards[1].coins == []


@pytest.mark.asyncio
async def test_denom_trace_resolved(client, session):
    session.get.return_value = _response(
        {"denom_trace": {"path": "transfer/channel-141", "base_denom": "uosmo"}}
    )

    trace = await client.resolve_denom_trace("ABCD")

    assert trace == DenomTrace(path="transfer/channel-141", base_denom="uosmo")
    assert session.get.call_args.args[0].endswith("/ibc/apps/transfer/v1/denom_traces/ABCD")


@pytest.mark.asyncio
async def test_denom_trace_falls_back_to_denoms_route(client, session):
    session.get.side_effect = [
        _response({"code": 12}, status_code=501),
        _response(
            {
                "denom": {
                    "base": "uatom",
                    "trace": [{"port_id": "transfer", "channel_id": "channel-0"}],
                }
            }
        ),
    ]

    trace = await client.resolve_denom_trace("ABCD")

    assert trace == DenomTrace(path="transfer/channel-0", base_denom="uatom")
    assert session.get.call_args.args[0].endswith("/ibc/apps/transfer/v1/denoms/ABCD")


@pytest.mark.asyncio
async def test_denom_trace_server_error_is_not_retried_on_other_route(client, session):
    session.get.return_value = _response({}, status_code=500)

    with pytest.raises(NetworkUnavailable):
        await client.resolve_denom_trace("ABCD")

    assert session.get.call_count == 1


@pytest.mark.asyncio
async def test_supply_pool_and_inflation(client, session):
    session.get.side_effect = [
        _response({"amount": {"denom": "uatom", "amount": "390000000000000"}}),
        _response({"pool": {"bonded_tokens": "250000000000000", "not_bonded_tokens": "1000"}}),
        _response({"inflation": "0.100000000000000000"}),
    ]

    supply = await client.get_supply("uatom")
    pool = await client.get_staking_pool()
    inflation = await client.get_inflation()

    assert supply == RawCoin("uatom", "390000000000000")
    assert session.get.call_args_list[0].kwargs["params"] == {"denom": "uatom"}
    assert pool.bonded_tokens == Decimal("250000000000000")
    assert inflation == Decimal("0.1")


@pytest.mark.asyncio
async def test_locked_coins(client, session):
    session.get.return_value = _response(
        {"coins": [{"denom": "gamm/pool/1", "amount": "500000000000000000"}]}
    )

    coins = await client.get_locked_coins("osmo1xyz")

    assert coins == [RawCoin("gamm/pool/1", "500000000000000000")]
    assert session.get.call_args.args[0].endswith(
        "/osmosis/lockup/v1beta1/account_locked_coins/osmo1xyz"
    )
