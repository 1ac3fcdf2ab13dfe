"""Staking APR lookup for one chain."""

from __future__ import annotations

from decimal import Decimal

from ..processors import calculate_apr
from ..state import AppState
from .clients import close_clients, make_chain_client


async def run_apr(state: AppState, chain_name: str) -> Decimal:
    """Compute the APR of ``chain_name``.

    Raises:
        ChainUnsupported: If the chain is not in the directory.
        QueryError: If the chain queries needed for the APR fail.
    """
    s = state.settings
    profile = await state.registry.get(chain_name)
    client = make_chain_client(s, profile)
    try:
        apr = await calculate_apr(
            profile,
            client,
            state.runner,
            sifchain_url=s.sifchain_apr_url,
            timeout=s.request_timeout,
        )
    finally:
        await close_clients([client])
    state.logger.info("APR for %s: %s", chain_name, apr)
    return apr
