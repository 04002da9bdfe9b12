# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for PilotFood.

This module turns computation results (plans, tax details, scenarios,
stress tests, product analyses, budget versus actual gaps) into pandas
DataFrames ready for console display or CSV export.

Amounts are kept as Decimals by the engine; they are rounded half-up to
``decimals`` places here, and only here, then converted to float so that
pandas can format and export them.
"""

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Optional

import pandas as pd

from .breakeven import BreakevenResult
from .brackets import BracketTax
from .comparison import IndicatorGap, SalesGap
from .costing import COMPONENT_TYPES, ProductCost
from .engine import INDICATOR_LABELS, FinancialPlanData
from .money import round_to
from .sensitivity import SensitivityResult
from .simulation import SimulationScenario
from .stress_test import StressTestSummary


def _num(value: Optional[Decimal], decimals: int) -> Optional[float]:
    if value is None:
        return None
    return float(round_to(value, decimals))


def plan_to_dataframe(plan: FinancialPlanData, decimals: int = 2) -> pd.DataFrame:
    """Income statement of a plan, one row per line.

    Columns: display_order, level, key, label, amount.

    Level-1 rows are the statement lines (see ``engine.INDICATOR_LABELS``);
    level-2 rows detail the professional expenses by category and are
    inserted right after the expenses total, sorted by category name.
    """
    rows = []
    for key, label in INDICATOR_LABELS.items():
        rows.append(
            {
                "level": 1,
                "key": key,
                "label": label,
                "amount": _num(getattr(plan, key), decimals),
            }
        )
        if key == "total_expenses":
            for category in sorted(plan.expenses_by_category):
                rows.append(
                    {
                        "level": 2,
                        "key": f"expense:{category}",
                        "label": category or "(sans catégorie)",
                        "amount": _num(plan.expenses_by_category[category], decimals),
                    }
                )

    df = pd.DataFrame(rows)
    df.insert(0, "display_order", (df.index + 1) * 10)
    return df


def plan_years_to_dataframe(
    plans: Mapping[int, Mapping[str, FinancialPlanData]], decimals: int = 2
) -> pd.DataFrame:
    """
    Long-format table of several plans.

    Columns: year, mode, key, label, amount. One row per statement line,
    year and mode.
    """
    frames = []
    for year, by_mode in plans.items():
        for mode, plan in by_mode.items():
            df = plan_to_dataframe(plan, decimals)
            df = df[df["level"] == 1][["key", "label", "amount"]].copy()
            df.insert(0, "mode", mode)
            df.insert(0, "year", year)
            frames.append(df)

    if not frames:
        return pd.DataFrame(columns=["year", "mode", "key", "label", "amount"])
    return pd.concat(frames, ignore_index=True)


def tax_details_to_dataframe(
    lines: Iterable[BracketTax], decimals: int = 2
) -> pd.DataFrame:
    """Tax due per bracket. Columns: bracket, rate, taxable_amount, tax."""
    rows = [
        {
            "bracket": line.label,
            "rate": _num(line.bracket.rate, decimals),
            "taxable_amount": _num(line.taxable_amount, decimals),
            "tax": _num(line.tax, decimals),
        }
        for line in lines
    ]
    return pd.DataFrame(rows, columns=["bracket", "rate", "taxable_amount", "tax"])


def scenarios_to_dataframe(
    scenarios: Sequence[SimulationScenario], decimals: int = 2
) -> pd.DataFrame:
    """Simulation table, one row per scenario."""
    columns = [
        "label",
        "target_net_result",
        "revenue",
        "goods_purchased",
        "expenses",
        "net_before_social",
        "social_contributions",
        "total_tax",
        "net_result",
    ]
    rows = []
    for scenario in scenarios:
        row = {"label": scenario.label}
        for col in columns[1:]:
            row[col] = _num(getattr(scenario, col), decimals)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def stress_to_dataframe(summary: StressTestSummary, decimals: int = 2) -> pd.DataFrame:
    """Baseline versus stressed indicators."""
    rows = [
        {
            "key": c.key,
            "label": c.label,
            "baseline": _num(c.baseline, decimals),
            "stressed": _num(c.stressed, decimals),
            "delta": _num(c.delta_absolute, decimals),
            "delta_pct": _num(c.delta_percent, 1),
        }
        for c in summary.comparisons
    ]
    return pd.DataFrame(
        rows, columns=["key", "label", "baseline", "stressed", "delta", "delta_pct"]
    )


def sensitivity_to_dataframe(
    grid: Mapping[str, Sequence[SensitivityResult]], decimals: int = 2
) -> pd.DataFrame:
    """Sensitivity grid in long format, one row per variation type and step."""
    columns = [
        "variation_type",
        "variation",
        "unit_cost",
        "margin",
        "margin_pct",
        "profitability",
        "revenue",
    ]
    rows = []
    for variation_type, results in grid.items():
        for r in results:
            rows.append(
                {
                    "variation_type": variation_type,
                    "variation": _num(r.variation, 0),
                    "unit_cost": _num(r.unit_cost, decimals),
                    "margin": _num(r.margin, decimals),
                    "margin_pct": _num(r.margin_pct, 1),
                    "profitability": _num(r.profitability, decimals),
                    "revenue": _num(r.revenue, decimals),
                }
            )
    return pd.DataFrame(rows, columns=columns)


def breakeven_to_dataframe(
    results: Iterable[BreakevenResult], decimals: int = 2
) -> pd.DataFrame:
    """Break-even table. A product that never breaks even shows empty cells."""
    columns = [
        "product",
        "channel",
        "price",
        "unit_cost",
        "unit_contribution",
        "contribution_rate",
        "break_even_units",
        "break_even_revenue",
        "current_volume",
        "safety_margin_pct",
        "is_profitable",
    ]
    rows = [
        {
            "product": r.product,
            "channel": r.channel,
            "price": _num(r.price, decimals),
            "unit_cost": _num(r.unit_cost, decimals),
            "unit_contribution": _num(r.unit_contribution, decimals),
            "contribution_rate": _num(r.contribution_rate, 1),
            "break_even_units": r.break_even_units,
            "break_even_revenue": _num(r.break_even_revenue, decimals),
            "current_volume": _num(r.current_volume, 0),
            "safety_margin_pct": _num(r.safety_margin_pct, 1),
            "is_profitable": r.is_profitable,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=columns)


def indicator_gaps_to_dataframe(
    gaps: Iterable[IndicatorGap], decimals: int = 2
) -> pd.DataFrame:
    """Budget versus actual indicators. ``gap_pct`` is empty for a zero budget."""
    rows = [
        {
            "key": g.key,
            "label": g.label,
            "budget": _num(g.budget, decimals),
            "reel": _num(g.reel, decimals),
            "gap": _num(g.gap, decimals),
            "gap_pct": _num(g.gap_pct, 1),
        }
        for g in gaps
    ]
    return pd.DataFrame(
        rows, columns=["key", "label", "budget", "reel", "gap", "gap_pct"]
    )


def sales_gaps_to_dataframe(
    gaps: Iterable[SalesGap], decimals: int = 2, name_column: str = "product"
) -> pd.DataFrame:
    """Budget versus actual sales, one row per product or category."""
    columns = [
        name_column,
        "budget_quantity",
        "reel_quantity",
        "quantity_gap",
        "budget_revenue",
        "reel_revenue",
        "revenue_gap",
        "revenue_gap_pct",
    ]
    rows = [
        {
            name_column: g.name or "(sans catégorie)",
            "budget_quantity": _num(g.budget_quantity, 0),
            "reel_quantity": _num(g.reel_quantity, 0),
            "quantity_gap": _num(g.quantity_gap, 0),
            "budget_revenue": _num(g.budget_revenue, decimals),
            "reel_revenue": _num(g.reel_revenue, decimals),
            "revenue_gap": _num(g.revenue_gap, decimals),
            "revenue_gap_pct": _num(g.revenue_gap_pct, 1),
        }
        for g in gaps
    ]
    return pd.DataFrame(rows, columns=columns)


def product_costs_to_dataframe(
    costs: Mapping[str, ProductCost], decimals: int = 2
) -> pd.DataFrame:
    """Unit cost of each product, split by component type."""
    columns = ["product", *COMPONENT_TYPES, "unit_cost", "deductible_vat"]
    rows = []
    for name in sorted(costs):
        cost = costs[name]
        row = {"product": name}
        for component_type in COMPONENT_TYPES:
            row[component_type] = _num(
                cost.cost_by_type.get(component_type, Decimal("0")), decimals
            )
        row["unit_cost"] = _num(cost.cost, decimals)
        row["deductible_vat"] = _num(cost.deductible_vat, decimals)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)
