# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Product break-even point per sales channel.

The break-even volume of a product is the number of units whose
contribution (price excluding VAT minus unit cost) covers the fixed costs
allocated to the product:

    break_even_units = ceil(allocated_fixed_cost / unit_contribution)

- without allocated fixed costs, a product with a positive contribution is
  profitable from the first unit (break-even 0),
- a product whose contribution is zero or negative never breaks even
  (break-even ``None``).

The safety margin tells how far the current volume is above the break-even
volume, in percent of the current volume.
"""

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .money import HUNDRED, ONE, ZERO, Number, to_decimal
from .products import ChannelMargins, Product, normalize_channel


@dataclass(frozen=True)
class BreakevenResult:
    """Break-even analysis of one product on one channel."""

    product: str
    category: Optional[str]
    channel: str
    unit_cost: Decimal
    allocated_fixed_cost: Decimal
    price: Decimal
    price_excl_vat: Decimal
    price_incl_vat: Decimal
    unit_contribution: Decimal
    contribution_rate: Decimal
    break_even_units: Optional[int]
    break_even_revenue: Optional[Decimal]
    break_even_revenue_excl_vat: Optional[Decimal]
    break_even_revenue_incl_vat: Optional[Decimal]
    current_volume: Decimal
    safety_margin_pct: Decimal
    safety_margin_units: Decimal
    distance_to_threshold_pct: Decimal
    is_profitable: bool


@dataclass(frozen=True)
class BreakevenSummary:
    """Break-even figures over all products, on the BTC channel."""

    total_break_even_units: int
    total_break_even_revenue: Decimal
    global_safety_margin_pct: Decimal
    profitable_count: int
    below_threshold_count: int
    profitable_by_channel: dict[str, int]


def calculate_breakeven(
    product: Product,
    channel: str,
    current_volume: Number = 0,
    allocated_fixed_cost: Number = 0,
    include_vat: bool = False,
    margins: Optional[ChannelMargins] = None,
) -> BreakevenResult:
    """Break-even analysis of a product on a channel."""
    channel = normalize_channel(channel)
    volume = to_decimal(current_volume)
    fixed = to_decimal(allocated_fixed_cost)

    price_excl = product.price(channel, margins)
    price_incl = price_excl * (ONE + product.vat_rate / HUNDRED)
    contribution = price_excl - product.unit_cost
    rate = contribution / price_excl * HUNDRED if price_excl > ZERO else ZERO

    units: Optional[int]
    if contribution <= ZERO:
        units = None
    elif fixed > ZERO:
        units = math.ceil(fixed / contribution)
    else:
        units = 0

    if units is None:
        revenue_excl = revenue_incl = None
        safety_pct = ZERO
        safety_units = ZERO
        distance = HUNDRED if volume > ZERO else ZERO
        profitable = False
    else:
        revenue_excl = Decimal(units) * price_excl
        revenue_incl = Decimal(units) * price_incl
        if volume > ZERO and units > 0:
            safety_units = volume - units
            safety_pct = safety_units / volume * HUNDRED
        elif volume > ZERO:
            safety_units = volume
            safety_pct = HUNDRED
        else:
            safety_units = ZERO
            safety_pct = ZERO

        if units > 0:
            distance = (volume - units) / Decimal(units) * HUNDRED
        else:
            distance = HUNDRED if volume > ZERO else ZERO
        profitable = volume >= units

    return BreakevenResult(
        product=product.name,
        category=product.category,
        channel=channel,
        unit_cost=product.unit_cost,
        allocated_fixed_cost=fixed,
        price=price_incl if include_vat else price_excl,
        price_excl_vat=price_excl,
        price_incl_vat=price_incl,
        unit_contribution=contribution,
        contribution_rate=rate,
        break_even_units=units,
        break_even_revenue=revenue_incl if include_vat else revenue_excl,
        break_even_revenue_excl_vat=revenue_excl,
        break_even_revenue_incl_vat=revenue_incl,
        current_volume=volume,
        safety_margin_pct=safety_pct,
        safety_margin_units=safety_units,
        distance_to_threshold_pct=distance,
        is_profitable=profitable,
    )


def allocate_fixed_cost(total_fixed_cost: Number, product_count: int) -> Decimal:
    """Share of the fixed costs carried by each product (even split)."""
    return to_decimal(total_fixed_cost) / Decimal(max(product_count, 1))


def breakeven_summary(
    products: Sequence[Product],
    volumes: Optional[Mapping[str, Number]] = None,
    total_fixed_cost: Number = 0,
    include_vat: bool = False,
    margins: Optional[ChannelMargins] = None,
) -> BreakevenSummary:
    """
    Aggregate break-even figures over a product range.

    Fixed costs are split evenly between products. Volumes are looked up
    by product name (missing products count as 0 units). Totals and the
    profitable/below-threshold counts use the BTC channel; the per-channel
    count of profitable products covers every channel.
    """
    volumes = volumes or {}
    allocated = allocate_fixed_cost(total_fixed_cost, len(products))

    profitable_by_channel: dict[str, int] = {}
    btc_results: list[BreakevenResult] = []
    for channel in ("btc", "btb", "distributor"):
        results = [
            calculate_breakeven(
                product,
                channel,
                current_volume=volumes.get(product.name, 0),
                allocated_fixed_cost=allocated,
                include_vat=include_vat,
                margins=margins,
            )
            for product in products
        ]
        profitable_by_channel[channel] = sum(1 for r in results if r.is_profitable)
        if channel == "btc":
            btc_results = results

    total_units = 0
    total_revenue = ZERO
    for result in btc_results:
        if result.break_even_units is not None:
            total_units += result.break_even_units
            total_revenue += result.break_even_revenue or ZERO

    profitable = sum(1 for r in btc_results if r.is_profitable)
    total_volume = sum((r.current_volume for r in btc_results), ZERO)
    if total_volume > ZERO and total_units > 0:
        global_margin = (total_volume - total_units) / total_volume * HUNDRED
    else:
        global_margin = ZERO

    return BreakevenSummary(
        total_break_even_units=total_units,
        total_break_even_revenue=total_revenue,
        global_safety_margin_pct=global_margin,
        profitable_count=profitable,
        below_threshold_count=len(btc_results) - profitable,
        profitable_by_channel=profitable_by_channel,
    )
