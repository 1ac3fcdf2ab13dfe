"""Pool-share valuation for one source address on the AMM chain."""

from __future__ import annotations

from ..adapters.pool_valuators import get_valuator_class
from ..addresses import decode_address, derive_address
from ..domain import PoolPosition
from ..errors import ChainUnsupported
from ..state import AppState
from .balance import normalize_chain_names
from .clients import close_clients, make_chain_client


async def run_pools(
    state: AppState, address: str, chain_names: list[str] | None = None
) -> list[PoolPosition]:
    """Value the pool shares ``address`` holds on the configured AMM chain.

    Args:
        state: Application state
        address: Source bech32 address, any prefix
        chain_names: Optional enabled-chain filter; when given and the AMM
            chain is not in it, no positions are returned

    Raises:
        InvalidAddressFormat: If the source address is not valid bech32.
    """
    s = state.settings
    log = state.logger

    decode_address(address)
    requested = normalize_chain_names(chain_names or [])
    if requested and s.amm_chain not in requested:
        log.debug("AMM chain %s not requested; no pool positions", s.amm_chain)
        return []

    try:
        profile = await state.registry.get(s.amm_chain)
    except ChainUnsupported as exc:
        log.warning("Pool valuation unavailable: %s", exc)
        return []

    valuator = get_valuator_class(s.amm_chain)(s, state.runner)
    derived = derive_address(address, profile)
    client = make_chain_client(s, profile)
    try:
        positions = await valuator.value_positions(derived.address, client)
    finally:
        await close_clients([client])

    log.info("Valued %d pool positions for %s", len(positions), derived.address)
    return positions
