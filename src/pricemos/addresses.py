"""Derive one account's address on every enabled chain."""

from __future__ import annotations

from collections.abc import Iterable

import bech32

from .domain import ChainProfile, DerivedAddress
from .errors import InvalidAddressFormat


def decode_address(address: str) -> tuple[str, list[int]]:
    """Split a bech32 address into its prefix and prefix-independent payload.

    Returns:
        Tuple of (prefix, 5-bit payload words without checksum)

    Raises:
        InvalidAddressFormat: If the string is not bech32 or the checksum fails.
    """
    if not isinstance(address, str) or not address:
        raise InvalidAddressFormat(str(address), "empty address")
    hrp, data = bech32.bech32_decode(address)
    if hrp is None or data is None:
        raise InvalidAddressFormat(address)
    if bech32.convertbits(data, 5, 8, False) is None:
        raise InvalidAddressFormat(address, "payload is not byte aligned")
    return hrp, data


def derive_address(source: str, chain: ChainProfile) -> DerivedAddress:
    return derive_addresses(source, [chain])[0]


def derive_addresses(
    source: str, chains: Iterable[ChainProfile]
) -> list[DerivedAddress]:
    """Re-encode ``source`` under each chain's prefix, in chain order.

    The payload bytes are identical across chains; only the prefix differs.
    Pure and deterministic: the same input always yields equal results.
    """
    _, data = decode_address(source)
    return [
        DerivedAddress(
            chain_name=chain.name,
            address=bech32.bech32_encode(chain.address_prefix, data),
            chain_profile=chain,
        )
        for chain in chains
    ]
