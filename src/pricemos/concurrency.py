"""Fan-out helpers shared by the aggregation pipeline."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

import backoff

from .domain import Settled
from .errors import MalformedResponse, QueryError
from .logger import get_logger
from .settings import PricemosSettings

logger = get_logger(__name__)

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")


async def settle_all(
    tasks: Iterable[tuple[K, Awaitable[V]]],
) -> Settled[K, V]:
    """Await every task and split outcomes into successes and failures.

    Never fails fast: one rejected awaitable does not cancel its siblings.
    Input order is preserved inside both lists.
    """
    keyed = list(tasks)
    results = await asyncio.gather(
        *[awaitable for _, awaitable in keyed], return_exceptions=True
    )

    settled: Settled[K, V] = Settled()
    for (key, _), result in zip(keyed, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            settled.failed.append((key, result))
        else:
            settled.succeeded.append((key, result))
    return settled


def _is_permanent(exc: Exception) -> bool:
    return isinstance(exc, MalformedResponse)


class QueryRunner:
    """Throttle and retry upstream queries on behalf of their callers.

    Clients never retry by themselves. Transient failures (network, timeout)
    are retried with exponential backoff up to ``query_retries`` extra
    attempts; malformed payloads give up immediately.
    """

    def __init__(self, settings: PricemosSettings):
        self._max_tries = settings.query_retries + 1
        self._sem = asyncio.Semaphore(settings.max_concurrent_queries)
        self._delay = settings.query_delay
        self._jitter = settings.query_jitter

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        def _on_backoff(details: Any) -> None:
            logger.debug(
                "Retrying %s (attempt %d of %d): %s",
                getattr(fn, "__name__", fn),
                details["tries"],
                self._max_tries,
                details.get("exception"),
            )

        @backoff.on_exception(
            backoff.expo,
            QueryError,
            max_tries=self._max_tries,
            giveup=_is_permanent,
            jitter=backoff.full_jitter,
            factor=0.25,
            on_backoff=_on_backoff,
        )
        async def _attempt() -> T:
            async with self._sem:
                try:
                    return await fn(*args, **kwargs)
                finally:
                    delay = self._delay + random.random() * self._jitter
                    if delay > 0:
                        await asyncio.sleep(delay)

        return await _attempt()
