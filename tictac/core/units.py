"""STX amount conversion and input sanitisation.

Amounts shown to players are in STX; everything sent to the chain or
compared against a balance is in microSTX (1 STX = 1,000,000 microSTX).
Conversions go through ``Decimal`` so that e.g. 4.35 STX is exactly
4,350,000 microSTX and not one micro short.
"""
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Union

from .errors import InvalidStake

MICRO_PER_STX = 1_000_000

Amount = Union[int, float, str, Decimal]


def as_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def to_micro(amount: Amount) -> int:
    """Convert an STX amount to microSTX, rounding down.

    Raises:
        InvalidStake: If the amount is negative.
    """
    value = as_decimal(amount)
    if value < 0:
        raise InvalidStake(f"Amount must not be negative, got {amount}")
    return int((value * MICRO_PER_STX).to_integral_value(rounding=ROUND_DOWN))


def to_stx(micro: int) -> Decimal:
    """Convert microSTX to STX."""
    return Decimal(micro) / MICRO_PER_STX


def format_stx(micro: int) -> str:
    """Render microSTX as a plain STX string: 150000000 -> '150', 1500 -> '0.0015'."""
    text = f"{Decimal(micro).scaleb(-6):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def parse_stake(value: Amount) -> Decimal:
    """Sanitise a user-entered stake.

    Args:
        value: Raw input, typically the text typed into the bet field

    Returns:
        The stake in STX as a finite, non-negative Decimal

    Raises:
        InvalidStake: If the input is empty, non-numeric, non-finite or negative
    """
    if isinstance(value, bool):
        raise InvalidStake(f"Stake must be a number, got {value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidStake("Stake must not be empty")
    try:
        stake = as_decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidStake(f"Stake must be a number, got {value!r}")
    if not stake.is_finite():
        raise InvalidStake(f"Stake must be finite, got {value!r}")
    if stake < 0:
        raise InvalidStake(f"Stake must not be negative, got {value!r}")
    return stake
