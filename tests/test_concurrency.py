from __future__ import annotations

import asyncio

import pytest

from pricemos.concurrency import QueryRunner, settle_all
from pricemos.errors import MalformedResponse, NetworkUnavailable
from pricemos.settings import PricemosSettings


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(exc, delay=0.0):
    await asyncio.sleep(delay)
    raise exc


@pytest.mark.asyncio
async def test_settle_all_splits_outcomes_in_input_order():
    boom = NetworkUnavailable("down")

    settled = await settle_all(
        [
            ("a", _value(1, delay=0.02)),
            ("b", _fail(boom)),
            ("c", _value(3)),
        ]
    )

    assert settled.succeeded == [("a", 1), ("c", 3)]
    assert settled.failed == [("b", boom)]
    assert settled.values == [1, 3]


@pytest.mark.asyncio
async def test_settle_all_does_not_fail_fast():
    """A rejection does not cancel slower siblings."""
    settled = await settle_all(
        [("fast-failure", _fail(ValueError("x"))), ("slow", _value("done", delay=0.05))]
    )

    assert settled.values == ["done"]


@pytest.mark.asyncio
async def test_settle_all_empty():
    settled = await settle_all([])

    assert settled.succeeded == [] and settled.failed == []


@pytest.mark.asyncio
async def test_runner_retries_transient_errors():
    runner = QueryRunner(PricemosSettings(query_retries=2))
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise NetworkUnavailable("temporarily down")
        return "ok"

    assert await runner.run(flaky) == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_runner_gives_up_after_max_tries():
    runner = QueryRunner(PricemosSettings(query_retries=1))
    calls = []

    async def down():
        calls.append(1)
        raise NetworkUnavailable("down")

    with pytest.raises(NetworkUnavailable):
        await runner.run(down)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_runner_does_not_retry_malformed_responses():
    runner = QueryRunner(PricemosSettings(query_retries=3))
    calls = []

    async def malformed():
        calls.append(1)
        raise MalformedResponse("bad shape")

    with pytest.raises(MalformedResponse):
        await runner.run(malformed)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_runner_passes_arguments(runner):
    async def echo(a, *, b):
        return a, b

    assert await runner.run(echo, 1, b=2) == (1, 2)
