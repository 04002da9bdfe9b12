# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Decimal helpers for monetary arithmetic.

Every amount, rate and percentage handled by PilotFood is a
``decimal.Decimal``. Values are kept at full precision during computation
and only rounded to cents when they are presented (views, CLI, CSV).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number to Decimal.

    Floats are converted through their string representation so that
    ``0.1`` becomes ``Decimal("0.1")`` and not its binary approximation.

    Raises:
        ValueError: if the value cannot be interpreted as a finite number
            (NaN and infinities are rejected).
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            if isinstance(value, float):
                result = Decimal(str(value))
            else:
                result = Decimal(value)
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"Invalid numeric value: {value!r}") from exc

    if not result.is_finite():
        raise ValueError(f"Invalid numeric value: {value!r}")
    return result


def percent_of(amount: Decimal, rate_pct: Decimal) -> Decimal:
    """Return ``rate_pct`` percent of ``amount``."""
    return amount * rate_pct / HUNDRED


def variation_factor(pct: Number) -> Decimal:
    """Multiplicative factor for a percentage variation (e.g. -10 -> 0.9)."""
    return ONE + to_decimal(pct) / HUNDRED


def round_cents(value: Decimal) -> Decimal:
    """Round a monetary value to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round_to(value: Decimal, decimals: int) -> Decimal:
    """Round a value to ``decimals`` places, half-up."""
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
