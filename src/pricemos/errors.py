"""Error taxonomy for balance aggregation."""

from __future__ import annotations


class PricemosError(Exception):
    """Base class for all pricemos errors."""


class InvalidAddressFormat(PricemosError):
    """Raised when a source address is not valid bech32."""

    def __init__(self, address: str, reason: str = "invalid bech32"):
        super().__init__(f"Invalid address {address!r}: {reason}")
        self.address = address
        self.reason = reason


class ChainUnsupported(PricemosError):
    """Raised when a requested chain is not present in the chain directory."""

    def __init__(self, chain_name: str, reason: str = "not found in directory"):
        super().__init__(f"Chain '{chain_name}' is not supported: {reason}")
        self.chain_name = chain_name


class QueryError(PricemosError):
    """A single upstream query failed. Isolated per call, never fatal."""


class NetworkUnavailable(QueryError):
    """Upstream endpoint could not be reached or returned an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class QueryTimeout(QueryError):
    """Upstream endpoint did not answer within the configured timeout."""


class MalformedResponse(QueryError):
    """Upstream endpoint returned a payload with an unexpected shape."""


class PricingUnavailable(PricemosError):
    """Market pricing could not be obtained for pool valuation or quotes."""
