# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Budget versus actual ('reel') comparison.

For a given year, the forecast and the actual figures are compared line by
line:

    gap     = reel - budget
    gap_pct = gap / budget * 100   (None when the budget is zero)

Three views are produced:

- the main indicators of the income statement, plus VAT and cash-flow,
- the sales of each product (quantity and revenue),
- the sales of each category (revenue).

Product and category rows are sorted by decreasing absolute revenue gap,
so that the largest deviations come first.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import pandas as pd

from .aggregation import PlanInputs, SalesBreakdown, aggregate_modes, project_inputs
from .engine import INDICATOR_LABELS, FinancialPlanData
from .fiscal import FiscalParameters
from .money import HUNDRED, ZERO
from .products import ChannelMargins
from .vat import VatRates

# Income statement lines compared, in display order.
COMPARED_INDICATORS: tuple[str, ...] = (
    "revenue",
    "goods_purchased",
    "gross_profit",
    "total_expenses",
    "net_before_social",
    "total_tax",
    "net_result",
)

CASH_LABELS: dict[str, str] = {
    "vat_collected": "TVA collectée",
    "vat_deductible": "TVA déductible",
    "vat_net": "TVA à payer",
    "cash_flow": "Trésorerie",
}


@dataclass(frozen=True)
class IndicatorGap:
    """Budget, actual value and gap of one indicator."""

    key: str
    label: str
    budget: Decimal
    reel: Decimal
    gap: Decimal
    gap_pct: Optional[Decimal]


@dataclass(frozen=True)
class SalesGap:
    """Budget and actual sales of one product or category."""

    name: str
    budget_quantity: Decimal
    reel_quantity: Decimal
    budget_revenue: Decimal
    reel_revenue: Decimal

    @property
    def quantity_gap(self) -> Decimal:
        return self.reel_quantity - self.budget_quantity

    @property
    def revenue_gap(self) -> Decimal:
        return self.reel_revenue - self.budget_revenue

    @property
    def revenue_gap_pct(self) -> Optional[Decimal]:
        return gap_percent(self.budget_revenue, self.revenue_gap)


@dataclass(frozen=True)
class BudgetVsReel:
    """Complete comparison of one year."""

    year: int
    indicators: list[IndicatorGap]
    by_product: list[SalesGap]
    by_category: list[SalesGap]


def gap_percent(budget: Decimal, gap: Decimal) -> Optional[Decimal]:
    """Gap in percent of the budget, None when the budget is zero."""
    if budget == ZERO:
        return None
    return gap / budget * HUNDRED


def indicator_gap(key: str, label: str, budget: Decimal, reel: Decimal) -> IndicatorGap:
    gap = reel - budget
    return IndicatorGap(
        key=key,
        label=label,
        budget=budget,
        reel=reel,
        gap=gap,
        gap_pct=gap_percent(budget, gap),
    )


def compare_plans(
    budget: FinancialPlanData, reel: FinancialPlanData
) -> list[IndicatorGap]:
    """
    Compare the main income statement lines of two projections.

    Works directly on the output of ``compute_plan_years()``::

        plans = compute_plan_years(sales, expenses, 2026, fiscal)
        gaps = compare_plans(plans[2026]["budget"], plans[2026]["reel"])
    """
    return [
        indicator_gap(
            key, INDICATOR_LABELS[key], getattr(budget, key), getattr(reel, key)
        )
        for key in COMPARED_INDICATORS
    ]


def compare_cash(budget: PlanInputs, reel: PlanInputs) -> list[IndicatorGap]:
    """Compare VAT and cash-flow of two sets of aggregated inputs."""
    values = {
        "vat_collected": (budget.vat.collected, reel.vat.collected),
        "vat_deductible": (budget.vat.deductible, reel.vat.deductible),
        "vat_net": (budget.vat.net, reel.vat.net),
        "cash_flow": (budget.cash_flow, reel.cash_flow),
    }
    return [
        indicator_gap(key, CASH_LABELS[key], *values[key]) for key in CASH_LABELS
    ]


def compare_sales(
    budget: Mapping[str, SalesBreakdown], reel: Mapping[str, SalesBreakdown]
) -> list[SalesGap]:
    """
    Compare sales grouped by product or category.

    Groups present on one side only are compared against zero.
    """
    empty = SalesBreakdown()
    names = set(budget) | set(reel)
    gaps = [
        SalesGap(
            name=name,
            budget_quantity=budget.get(name, empty).quantity,
            reel_quantity=reel.get(name, empty).quantity,
            budget_revenue=budget.get(name, empty).revenue,
            reel_revenue=reel.get(name, empty).revenue,
        )
        for name in names
    ]
    return sorted(gaps, key=lambda g: (-abs(g.revenue_gap), g.name))


def budget_vs_reel(
    sales: pd.DataFrame,
    expenses: pd.DataFrame,
    year: int,
    fiscal: FiscalParameters,
    margins: Optional[ChannelMargins] = None,
    components: Optional[pd.DataFrame] = None,
    vat_rates: Optional[VatRates] = None,
) -> BudgetVsReel:
    """Compare the budget and actual records of one year.

    Args:
        sales: DataFrame as returned by ``io.read_sales()``.
        expenses: DataFrame as returned by ``io.read_expenses()``.
        year: Year compared.
        fiscal: Fiscal parameters of the projections.
        margins: Channel margins used to derive BTB and distributor prices.
        components: Optional cost components (``io.read_cost_components()``).
        vat_rates: Default VAT rates.

    Returns:
        A BudgetVsReel instance.
    """
    inputs = aggregate_modes(sales, expenses, year, margins, components, vat_rates)
    budget, reel = inputs["budget"], inputs["reel"]

    indicators = compare_plans(
        project_inputs(budget, fiscal), project_inputs(reel, fiscal)
    )
    indicators.extend(compare_cash(budget, reel))

    return BudgetVsReel(
        year=year,
        indicators=indicators,
        by_product=compare_sales(budget.by_product, reel.by_product),
        by_category=compare_sales(budget.by_category, reel.by_category),
    )
