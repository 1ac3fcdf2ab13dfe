from __future__ import annotations

import json
from decimal import Decimal

from rich.console import Console

from pricemos.domain import (
    ChainBalanceSnapshot,
    ChainResult,
    ChainStatus,
    PoolPosition,
    ResolvedCoin,
)
from pricemos.processors import totalize
from pricemos.report import dumps, format_balance_table, generate_report, to_jsonable


def _total(cosmoshub):
    hub = ChainResult(
        name="cosmoshub",
        profile=cosmoshub,
        address="cosmos1hubaddressxxxxxxxxxxxxxxxx",
        snapshot=ChainBalanceSnapshot(
            address="cosmos1hubaddressxxxxxxxxxxxxxxxx",
            liquid=[ResolvedCoin("uatom", Decimal("1.5"))],
            errors={"rewards": "timed out"},
        ),
    )
    missing = ChainResult(name="nochain", error="not found in directory")
    return totalize([hub, missing])


def test_to_jsonable_converts_domain_values(cosmoshub):
    assert to_jsonable(Decimal("0.25")) == 0.25
    assert to_jsonable(ChainStatus.PARTIAL) == "partial"
    assert to_jsonable(("a", Decimal(1))) == ["a", 1.0]

    result = to_jsonable(ChainResult(name="nochain"))
    assert result["status"] == "unsupported"
    assert result["snapshot"] is None


def test_report_to_dict(cosmoshub):
    report = generate_report("cosmos1src", _total(cosmoshub), ["cosmoshub", "nochain"])

    body = report.to_dict()

    assert set(body) == {"address", "balances", "chains"}
    assert body["chains"] == "cosmoshub,nochain"
    assert body["balances"]["native"] == {"cosmoshub": 1.5}
    assert [c["status"] for c in body["balances"]["chains"]] == ["partial", "unsupported"]
    json.dumps(body)


def test_dumps_pool_positions():
    encoded = dumps([PoolPosition("ATOM/OSMO", "gamm/pool/1", Decimal("2"), Decimal("3.5"))])

    assert json.loads(encoded) == [
        {"pair_symbol": "ATOM/OSMO", "denom": "gamm/pool/1", "amount": 2.0, "implied_price": 3.5}
    ]


def test_balance_table_lists_chains_and_totals(cosmoshub):
    report = generate_report("cosmos1src", _total(cosmoshub), ["cosmoshub", "nochain"])
    console = Console(record=True, width=160)

    format_balance_table(report, console=console)

    output = console.export_text()
    assert "cosmoshub" in output
    assert "nochain" in output
    assert "unsupported" in output
    assert "uatom" in output
    assert "1.500000" in output
    assert "rewards: timed out" in output


def test_balance_table_lists_valued_pools(cosmoshub):
    position = PoolPosition("ATOM/OSMO", "gamm/pool/1", Decimal("2"), Decimal("3.5"))
    report = generate_report("cosmos1src", _total(cosmoshub), ["cosmoshub"], [position])
    console = Console(record=True, width=160)

    format_balance_table(report, console=console)

    output = console.export_text()
    assert "Pools" in output
    assert "ATOM/OSMO" in output
    assert "3.500000" in output
