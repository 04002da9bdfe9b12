# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Progressive income tax brackets.

A bracket ("tranche") is a contiguous income range taxed at a single
marginal rate. Income is spread over the brackets from the lowest one
upwards, and each portion is taxed at the rate of the bracket it falls in:

    brackets: [0 - 15820] @ 25 %, [15820 - 27920] @ 40 %, ...
    compute_tax(20000) = 15820 * 25 % + (20000 - 15820) * 40 % = 5627

The calculator does not check the bracket layout. Consistency (no gap, no
overlap, a single unbounded top bracket, ``order`` agreeing with the lower
bounds) is checked once, when brackets are loaded from the configuration,
by ``validate_brackets()``.

Brackets are always walked in ascending ``lower_bound`` order; ``order`` is
only used to break ties and for display.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .money import ZERO, Number, percent_of, to_decimal


class BracketConfigurationError(ValueError):
    """Raised when a set of tax brackets is not a valid progressive scale."""


@dataclass(frozen=True)
class TaxBracket:
    """
    One income tax bracket.

    Attributes:
        lower_bound: Income at which the bracket starts.
        upper_bound: Income at which the bracket ends, or None for the
            unbounded top bracket.
        rate: Marginal rate, in percent (e.g. Decimal("40") for 40 %).
        order: Position of the bracket in the user-defined scale.
    """

    lower_bound: Decimal
    upper_bound: Optional[Decimal]
    rate: Decimal
    order: int

    @classmethod
    def create(
        cls,
        lower_bound: Number,
        upper_bound: Optional[Number],
        rate: Number,
        order: int,
    ) -> "TaxBracket":
        """Build a bracket from plain numbers."""
        return cls(
            lower_bound=to_decimal(lower_bound),
            upper_bound=None if upper_bound is None else to_decimal(upper_bound),
            rate=to_decimal(rate),
            order=int(order),
        )

    @property
    def is_unbounded(self) -> bool:
        return self.upper_bound is None

    def width(self) -> Optional[Decimal]:
        """Size of the bracket, or None when it is unbounded."""
        if self.upper_bound is None:
            return None
        return self.upper_bound - self.lower_bound


@dataclass(frozen=True)
class BracketTax:
    """Tax due on the part of the income that falls in one bracket."""

    bracket: TaxBracket
    taxable_amount: Decimal
    tax: Decimal

    @property
    def label(self) -> str:
        return bracket_label(self.bracket)


# Belgian personal income tax scale (2026 income).
DEFAULT_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket.create(0, 15820, 25, 1),
    TaxBracket.create(15820, 27920, 40, 2),
    TaxBracket.create(27920, 48320, 45, 3),
    TaxBracket.create(48320, None, 50, 4),
)


def sort_brackets(brackets: Iterable[TaxBracket]) -> list[TaxBracket]:
    """Return brackets in canonical order (lower bound, then order)."""
    return sorted(brackets, key=lambda b: (b.lower_bound, b.order))


def compute_tax_details(
    taxable_base: Number, brackets: Sequence[TaxBracket]
) -> list[BracketTax]:
    """
    Spread a taxable base over the brackets.

    Returns one line per bracket that receives a positive part of the base,
    lowest bracket first. Brackets above the base are not listed.
    """
    base = to_decimal(taxable_base)
    if base <= ZERO or not brackets:
        return []

    lines: list[BracketTax] = []
    remaining = base
    for bracket in sort_brackets(brackets):
        if remaining <= ZERO:
            break

        width = bracket.width()
        taxable = remaining if width is None else min(remaining, width)
        if taxable > ZERO:
            lines.append(
                BracketTax(
                    bracket=bracket,
                    taxable_amount=taxable,
                    tax=percent_of(taxable, bracket.rate),
                )
            )
            remaining -= taxable

    return lines


def compute_tax(taxable_base: Number, brackets: Sequence[TaxBracket]) -> Decimal:
    """
    Compute the progressive tax due on a taxable base.

    Args:
        taxable_base: Income subject to the scale. Zero or negative bases
            yield no tax.
        brackets: Tax scale. An empty scale yields no tax.

    Returns:
        The tax, at full Decimal precision.
    """
    return sum(
        (line.tax for line in compute_tax_details(taxable_base, brackets)),
        ZERO,
    )


def validate_brackets(brackets: Sequence[TaxBracket]) -> list[TaxBracket]:
    """
    Check that brackets form a contiguous progressive scale.

    Rules:
        - rates and bounds are non-negative,
        - each bounded bracket has upper_bound > lower_bound,
        - the first bracket starts at 0,
        - each bracket starts where the previous one ends (no gap/overlap),
        - only the last bracket is unbounded, and it must be,
        - ``order`` values are unique and sort the brackets the same way
          as their lower bounds.

    An empty scale is accepted (no income tax).

    Returns:
        The brackets in canonical order.

    Raises:
        BracketConfigurationError: on the first rule that is broken.
    """
    ordered = sort_brackets(brackets)
    if not ordered:
        return ordered

    orders = [b.order for b in ordered]
    if len(set(orders)) != len(orders):
        raise BracketConfigurationError("Duplicate 'order' values in tax brackets.")
    if orders != sorted(orders):
        raise BracketConfigurationError(
            "Tax bracket 'order' values do not follow the lower bounds."
        )

    if ordered[0].lower_bound != ZERO:
        raise BracketConfigurationError(
            f"First tax bracket must start at 0, got {ordered[0].lower_bound}."
        )

    for index, bracket in enumerate(ordered):
        is_last = index == len(ordered) - 1

        if bracket.rate < ZERO:
            raise BracketConfigurationError(
                f"Negative rate in tax bracket #{bracket.order}."
            )
        if bracket.lower_bound < ZERO:
            raise BracketConfigurationError(
                f"Negative lower bound in tax bracket #{bracket.order}."
            )

        if bracket.upper_bound is None:
            if not is_last:
                raise BracketConfigurationError(
                    f"Only the last tax bracket may be unbounded "
                    f"(bracket #{bracket.order})."
                )
            continue

        if bracket.upper_bound <= bracket.lower_bound:
            raise BracketConfigurationError(
                f"Tax bracket #{bracket.order} ends before it starts."
            )
        if is_last:
            raise BracketConfigurationError(
                "The last tax bracket must be unbounded (no upper_bound)."
            )

        following = ordered[index + 1]
        if following.lower_bound != bracket.upper_bound:
            kind = "overlap" if following.lower_bound < bracket.upper_bound else "gap"
            raise BracketConfigurationError(
                f"Tax brackets #{bracket.order} and #{following.order} {kind}: "
                f"{bracket.upper_bound} != {following.lower_bound}."
            )

    return ordered


def _format_amount(value: Decimal) -> str:
    # fr-BE style: space between thousands, comma for decimals
    text = f"{value:,.0f}" if value == value.to_integral_value() else f"{value:,.2f}"
    return text.replace(",", " ").replace(".", ",")


def bracket_label(bracket: TaxBracket) -> str:
    """Human-readable bracket label, e.g. '15 820 - 27 920 €' or '> 48 320 €'."""
    if bracket.upper_bound is None:
        return f"> {_format_amount(bracket.lower_bound)} €"
    return (
        f"{_format_amount(bracket.lower_bound)} - "
        f"{_format_amount(bracket.upper_bound)} €"
    )
