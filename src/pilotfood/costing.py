# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Unit cost of products from their recipe.

The cost of one unit of a product is the sum of its component lines:

- ingredients:    quantity used * ingredient unit cost,
- packaging:      quantity * packaging unit cost,
- variable costs: quantity * variable cost unit cost (energy, labels, ...).

Each line also carries the VAT paid on the purchase, deductible from the
VAT collected on sales. A line without its own VAT rate uses the default
purchase rate.

Component lines can be restricted to a mode ('budget' or 'reel'); lines
without a mode apply to both.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import pandas as pd

from .money import ZERO, Number, percent_of, to_decimal
from .vat import DEFAULT_PURCHASE_VAT_RATE

COMPONENT_TYPES: tuple[str, ...] = ("ingredient", "packaging", "variable_cost")


@dataclass(frozen=True)
class ProductCost:
    """
    Cost of one unit of a product.

    Attributes:
        product: Product name.
        cost: Unit cost excluding VAT.
        deductible_vat: VAT paid on the purchases of one unit.
        cost_by_type: Unit cost per component type.
    """

    product: str
    cost: Decimal
    deductible_vat: Decimal
    cost_by_type: Mapping[str, Decimal] = field(default_factory=dict)


def normalize_component_type(value: str) -> str:
    """
    Return the canonical component type.

    Raises:
        ValueError: for an unknown type.
    """
    text = str(value).strip().lower().replace(" ", "_").replace("-", "_")
    if text not in COMPONENT_TYPES:
        raise ValueError(
            f"Unknown cost component type {value!r}, "
            f"expected one of {', '.join(COMPONENT_TYPES)}."
        )
    return text


def compute_product_costs(
    components: pd.DataFrame,
    mode: Optional[str] = None,
    purchase_vat_rate: Number = DEFAULT_PURCHASE_VAT_RATE,
) -> dict[str, ProductCost]:
    """Unit cost of every product listed in a component table.

    Args:
        components: DataFrame as returned by ``io.read_cost_components()``.
        mode: Keep the lines of this mode and the lines without a mode.
            All lines are kept when None.
        purchase_vat_rate: VAT rate of lines without their own rate.

    Returns:
        ``{product name: ProductCost}``.
    """
    default_rate = to_decimal(purchase_vat_rate)

    selected = components
    if mode is not None:
        selected = components[components["mode"].isna() | (components["mode"] == mode)]

    totals: dict[str, dict[str, Decimal]] = {}
    vat: dict[str, Decimal] = {}
    for line in selected.itertuples(index=False):
        amount = to_decimal(float(line.quantity)) * to_decimal(float(line.unit_cost))
        if pd.isna(line.vat_rate):
            rate = default_rate
        else:
            rate = to_decimal(float(line.vat_rate))

        by_type = totals.setdefault(line.product, {})
        by_type[line.component_type] = by_type.get(line.component_type, ZERO) + amount
        vat[line.product] = vat.get(line.product, ZERO) + percent_of(amount, rate)

    return {
        product: ProductCost(
            product=product,
            cost=sum(by_type.values(), ZERO),
            deductible_vat=vat[product],
            cost_by_type=by_type,
        )
        for product, by_type in totals.items()
    }
