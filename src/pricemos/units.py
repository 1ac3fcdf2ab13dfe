from __future__ import annotations

from decimal import Decimal, InvalidOperation


def to_decimal(value: str | int | Decimal) -> Decimal:
    """Parse an on-chain amount without going through float.

    Raises:
        ValueError: If the value is not numeric, not finite, or negative.
    """
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Amount {value!r} is not numeric") from exc
    if not parsed.is_finite():
        raise ValueError(f"Amount {value!r} is not finite")
    if parsed < 0:
        raise ValueError(f"Amount must be non-negative, got {value!r}")
    return parsed


def scale_down(value: str | int | Decimal, decimals: int) -> Decimal:
    """Convert an integer base-unit amount to display units.

    Args:
        value: Amount expressed in base units (``uatom``, ``uosmo``...).
        decimals: Number of decimal places of the display unit.

    Returns:
        ``value / 10**decimals`` as a Decimal. Only the exponent changes,
        so the conversion is exact.
    """
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")
    return to_decimal(value).scaleb(-decimals)


def scale_up(value: Decimal, decimals: int) -> Decimal:
    """Inverse of :func:`scale_down`."""
    if decimals < 0:
        raise ValueError(f"Decimals must be non-negative, got {decimals}")
    return value.scaleb(decimals)
