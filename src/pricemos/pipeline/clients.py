"""Per-request chain client construction."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from ..clients.chain import ChainQueryClient
from ..domain import ChainProfile
from ..settings import PricemosSettings


def make_chain_client(settings: PricemosSettings, profile: ChainProfile) -> ChainQueryClient:
    return ChainQueryClient(
        profile.name,
        profile.rest_endpoint,
        timeout=settings.request_timeout,
        pagination_limit=settings.pagination_limit,
    )


async def close_clients(clients: Iterable[ChainQueryClient]) -> None:
    await asyncio.gather(*(asyncio.to_thread(client.close) for client in clients))
