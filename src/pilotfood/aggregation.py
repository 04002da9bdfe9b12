# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Aggregation of sales and expense records into projection inputs.

The projection engine works on three aggregates: revenue, goods purchased
and professional expenses. This module computes them from the records read
by ``io.py``, for a given year and mode:

- revenue         = sum(quantity * price), where the price is the line's
                    ``unit_price`` override or the channel price derived
                    from the product's BTC price,
- goods purchased = sum(quantity * unit cost), where the unit cost comes
                    from the product's cost components when known and
                    from the line's ``unit_cost`` otherwise,
- expenses        = sum(amount), also grouped by category.

Sales are also broken down by product and by category, and the VAT
collected on sales and deductible on purchases is summed for cash-flow.

Modes
-----
Each record belongs to a mode: 'budget' (forecast) or 'reel' (actual).
``compute_plan_years()`` projects both modes for a base year N and the
following year N+1, which is what the financial plan screen compares.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import pandas as pd

from .costing import ProductCost, compute_product_costs
from .engine import FinancialPlanData, project
from .fiscal import FiscalParameters
from .io import MODES
from .money import ZERO, percent_of, to_decimal
from .products import ChannelMargins, channel_price
from .vat import VatRates, VatSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesBreakdown:
    """Quantity, revenue and cost of goods of a group of sales lines."""

    quantity: Decimal = ZERO
    revenue: Decimal = ZERO
    cost: Decimal = ZERO

    @property
    def margin(self) -> Decimal:
        return self.revenue - self.cost


@dataclass(frozen=True)
class PlanInputs:
    """Aggregated inputs of a projection."""

    revenue: Decimal = ZERO
    goods_purchased: Decimal = ZERO
    expenses: Decimal = ZERO
    expenses_by_category: Mapping[str, Decimal] = field(default_factory=dict)
    vat: VatSummary = field(default_factory=VatSummary)
    by_product: Mapping[str, SalesBreakdown] = field(default_factory=dict)
    by_category: Mapping[str, SalesBreakdown] = field(default_factory=dict)

    @property
    def cash_flow(self) -> Decimal:
        """Cash generated: sales incl. VAT minus purchases incl. VAT and expenses."""
        return (
            self.revenue
            + self.vat.collected
            - self.goods_purchased
            - self.vat.deductible
            - self.expenses
        )


def _filter(
    df: pd.DataFrame, year: Optional[int], mode: Optional[str]
) -> pd.DataFrame:
    mask = pd.Series(True, index=df.index)
    if year is not None:
        mask &= df["year"] == int(year)
    if mode is not None:
        mask &= df["mode"] == mode
    return df.loc[mask]


def _add(
    groups: dict[str, list[Decimal]],
    key: str,
    quantity: Decimal,
    revenue: Decimal,
    cost: Decimal,
) -> None:
    totals = groups.setdefault(key, [ZERO, ZERO, ZERO])
    totals[0] += quantity
    totals[1] += revenue
    totals[2] += cost


def _breakdowns(groups: dict[str, list[Decimal]]) -> dict[str, SalesBreakdown]:
    return {key: SalesBreakdown(*totals) for key, totals in groups.items()}


def aggregate_plan_inputs(
    sales: pd.DataFrame,
    expenses: pd.DataFrame,
    year: Optional[int] = None,
    mode: Optional[str] = None,
    margins: Optional[ChannelMargins] = None,
    product_costs: Optional[Mapping[str, ProductCost]] = None,
    vat_rates: Optional[VatRates] = None,
) -> PlanInputs:
    """Aggregate sales and expenses into projection inputs.

    Args:
        sales: DataFrame as returned by ``io.read_sales()``.
        expenses: DataFrame as returned by ``io.read_expenses()``.
        year: Keep only records of this year (all years when None).
        mode: Keep only records of this mode (all modes when None).
        margins: Channel margins used to derive BTB and distributor prices.
        product_costs: Unit costs from cost components, by product name.
            They take precedence over the ``unit_cost`` of sales lines.
        vat_rates: Default VAT rates of lines without their own rate.

    Returns:
        A PlanInputs instance. Empty selections give zeros.

    Raises:
        ValueError: if a sales line has no unit cost and its product has
            no cost components.
    """
    rates = vat_rates or VatRates()
    costs = product_costs or {}

    revenue = ZERO
    goods = ZERO
    collected = ZERO
    deductible = ZERO
    products: dict[str, list[Decimal]] = {}
    categories: dict[str, list[Decimal]] = {}
    for line in _filter(sales, year, mode).itertuples(index=False):
        quantity = to_decimal(float(line.quantity))
        if pd.isna(line.unit_price):
            price = channel_price(
                to_decimal(float(line.btc_price)), line.channel, margins
            )
        else:
            price = to_decimal(float(line.unit_price))

        product_cost = costs.get(line.product)
        if product_cost is not None:
            unit_cost = product_cost.cost
            unit_vat = product_cost.deductible_vat
        elif not pd.isna(line.unit_cost):
            unit_cost = to_decimal(float(line.unit_cost))
            unit_vat = percent_of(unit_cost, rates.purchase_rate)
        else:
            raise ValueError(
                f"No unit cost for product {line.product!r}: fill its "
                "'unit_cost' in the sales file or give its cost components."
            )

        if pd.isna(line.vat_rate):
            sales_rate = rates.sales_rate
        else:
            sales_rate = to_decimal(float(line.vat_rate))

        line_revenue = quantity * price
        line_cost = quantity * unit_cost
        revenue += line_revenue
        goods += line_cost
        collected += percent_of(line_revenue, sales_rate)
        deductible += quantity * unit_vat
        _add(products, line.product, quantity, line_revenue, line_cost)
        _add(categories, line.category, quantity, line_revenue, line_cost)

    by_category: dict[str, Decimal] = {}
    total_expenses = ZERO
    for line in _filter(expenses, year, mode).itertuples(index=False):
        amount = to_decimal(float(line.amount))
        by_category[line.category] = by_category.get(line.category, ZERO) + amount
        total_expenses += amount

    return PlanInputs(
        revenue=revenue,
        goods_purchased=goods,
        expenses=total_expenses,
        expenses_by_category=by_category,
        vat=VatSummary(collected=collected, deductible=deductible),
        by_product=_breakdowns(products),
        by_category=_breakdowns(categories),
    )


def project_inputs(inputs: PlanInputs, fiscal: FiscalParameters) -> FinancialPlanData:
    """Project aggregated inputs."""
    return project(
        inputs.revenue,
        inputs.goods_purchased,
        inputs.expenses,
        fiscal,
        expenses_by_category=inputs.expenses_by_category,
    )


def aggregate_modes(
    sales: pd.DataFrame,
    expenses: pd.DataFrame,
    year: int,
    margins: Optional[ChannelMargins] = None,
    components: Optional[pd.DataFrame] = None,
    vat_rates: Optional[VatRates] = None,
) -> dict[str, PlanInputs]:
    """
    Aggregate one year in both modes.

    When ``components`` is given (see ``io.read_cost_components()``), the
    unit cost of each product is computed from the components of the mode.
    """
    rates = vat_rates or VatRates()
    result: dict[str, PlanInputs] = {}
    for mode in MODES:
        product_costs = None
        if components is not None:
            product_costs = compute_product_costs(
                components, mode, rates.purchase_rate
            )
        inputs = aggregate_plan_inputs(
            sales, expenses, year, mode, margins, product_costs, rates
        )
        logger.debug(
            "Plan inputs %s/%s: revenue=%s goods=%s expenses=%s",
            year,
            mode,
            inputs.revenue,
            inputs.goods_purchased,
            inputs.expenses,
        )
        result[mode] = inputs
    return result


def compute_plan_years(
    sales: pd.DataFrame,
    expenses: pd.DataFrame,
    base_year: int,
    fiscal: FiscalParameters,
    margins: Optional[ChannelMargins] = None,
    components: Optional[pd.DataFrame] = None,
    vat_rates: Optional[VatRates] = None,
) -> dict[int, dict[str, FinancialPlanData]]:
    """
    Project years N and N+1 in both modes.

    Returns:
        ``{year: {mode: FinancialPlanData}}`` for ``base_year`` and
        ``base_year + 1``, modes 'budget' and 'reel'. Years or modes without
        records give an empty projection.
    """
    plans: dict[int, dict[str, FinancialPlanData]] = {}
    for year in (base_year, base_year + 1):
        inputs = aggregate_modes(
            sales, expenses, year, margins, components, vat_rates
        )
        plans[year] = {
            mode: project_inputs(mode_inputs, fiscal)
            for mode, mode_inputs in inputs.items()
        }
    return plans
