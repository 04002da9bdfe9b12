# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Sensitivity of product margins to cost, price and volume changes.

For one product, each variation changes a single driver:

- cost:   unit cost * (1 + pct / 100)
- price:  BTC price * (1 + pct / 100)
- volume: sold volume * (1 + pct / 100)

and the margin, margin rate, revenue and profitability (margin * volume)
are recomputed. Category sensitivity sums revenue and profitability over
the products of the category and averages unit cost and margin.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from .money import HUNDRED, ZERO, Number, to_decimal, variation_factor
from .products import Product

VARIATION_TYPES: tuple[str, ...] = ("cost", "price", "volume")
DEFAULT_VARIATIONS: tuple[int, ...] = (-30, -20, -10, 0, 10, 20, 30)
DEFAULT_BASE_VOLUME = Decimal("100")


@dataclass(frozen=True)
class SensitivityResult:
    """Margin figures for one variation."""

    variation: Decimal
    unit_cost: Decimal
    margin: Decimal
    margin_pct: Decimal
    profitability: Decimal
    revenue: Decimal


def calculate_sensitivity(
    product: Product,
    variation_type: str,
    variation_pct: Number,
    base_volume: Number = DEFAULT_BASE_VOLUME,
) -> SensitivityResult:
    """
    Recompute a product's margin after changing one driver.

    Raises:
        ValueError: for an unknown variation type.
    """
    if variation_type not in VARIATION_TYPES:
        raise ValueError(
            f"Unknown variation type {variation_type!r}, "
            f"expected one of {', '.join(VARIATION_TYPES)}."
        )

    pct = to_decimal(variation_pct)
    factor = variation_factor(pct)
    unit_cost = product.unit_cost
    price = product.btc_price
    volume = to_decimal(base_volume)

    if variation_type == "cost":
        unit_cost = unit_cost * factor
    elif variation_type == "price":
        price = price * factor
    else:
        volume = volume * factor

    margin = price - unit_cost
    return SensitivityResult(
        variation=pct,
        unit_cost=unit_cost,
        margin=margin,
        margin_pct=margin / price * HUNDRED if price > ZERO else ZERO,
        profitability=margin * volume,
        revenue=price * volume,
    )


def product_sensitivity(
    product: Product,
    variations: Sequence[Number] = DEFAULT_VARIATIONS,
    base_volume: Number = DEFAULT_BASE_VOLUME,
) -> dict[str, list[SensitivityResult]]:
    """Sensitivity grid of a product: variation type -> results."""
    return {
        variation_type: [
            calculate_sensitivity(product, variation_type, pct, base_volume)
            for pct in variations
        ]
        for variation_type in VARIATION_TYPES
    }


def _aggregate(
    products: Sequence[Product],
    variation_type: str,
    pct: Number,
    base_volume: Number,
) -> SensitivityResult:
    results = [
        calculate_sensitivity(product, variation_type, pct, base_volume)
        for product in products
    ]
    count = Decimal(len(results))
    total_margin = sum((r.margin for r in results), ZERO)
    total_revenue = sum((r.revenue for r in results), ZERO)
    # unit price = margin + unit cost
    total_price = sum((r.margin + r.unit_cost for r in results), ZERO)

    if total_price > ZERO:
        margin_pct = total_margin / total_price * HUNDRED
    else:
        margin_pct = ZERO

    return SensitivityResult(
        variation=to_decimal(pct),
        unit_cost=sum((r.unit_cost for r in results), ZERO) / count,
        margin=total_margin / count,
        margin_pct=margin_pct,
        profitability=sum((r.profitability for r in results), ZERO),
        revenue=total_revenue,
    )


def category_sensitivity(
    products: Sequence[Product],
    variations: Sequence[Number] = DEFAULT_VARIATIONS,
    base_volume: Number = DEFAULT_BASE_VOLUME,
) -> dict[str, list[SensitivityResult]]:
    """
    Sensitivity grid of a group of products.

    Returns an empty dict when ``products`` is empty.
    """
    if not products:
        return {}
    return {
        variation_type: [
            _aggregate(products, variation_type, pct, base_volume)
            for pct in variations
        ]
        for variation_type in VARIATION_TYPES
    }
