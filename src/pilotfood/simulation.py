# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Revenue scenarios: "how much must I sell to earn X?".

The solver answers the question by bisection over the revenue. For a fixed
cost coefficient and fixed expenses, the net result of ``engine.project()``
never decreases when the revenue grows: gross profit, net result before tax
and taxable base all grow with the revenue, and the bracket tax is a
non-decreasing convex function of the taxable base. This monotonicity is
what makes bisection valid.

The solver always returns an estimate. When the target cannot be reached
within the search interval (or the coefficient is <= 1, so that selling
more never earns more), the result is flagged ``converged=False``.

Scenarios
---------
``build_simulation_scenarios()`` produces the table shown to the user:

- break-even ("seuil de rentabilité"): revenue for a net result of 0,
- viability threshold ("seuil de viabilité"): user-chosen revenue,
- ideal revenue ("revenu idéal"): user-chosen revenue.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .engine import FinancialPlanData, project
from .fiscal import FiscalParameters
from .money import ZERO, Number, to_decimal

logger = logging.getLogger(__name__)

TWO = Decimal("2")

BREAKEVEN_LABEL = "Seuil de rentabilité (équilibre)"
VIABILITY_LABEL = "Seuil de viabilité"
IDEAL_LABEL = "Revenu idéal"


@dataclass(frozen=True)
class SolverSettings:
    """
    Tunable constants of the revenue solver.

    Attributes:
        ceiling: Upper bound of the searched revenue. Chosen well above any
            realistic size for the businesses PilotFood targets.
        max_iterations: Bisection steps. 100 steps over 10 million give a
            sub-cent interval.
        tolerance: Stop as soon as the net result is within this amount of
            the target.
    """

    ceiling: Decimal = Decimal("10000000")
    max_iterations: int = 100
    tolerance: Decimal = Decimal("1")


@dataclass(frozen=True)
class SolverResult:
    """Outcome of a revenue search."""

    revenue: Decimal
    net_result: Decimal
    iterations: int
    converged: bool


@dataclass(frozen=True)
class SimulationScenario:
    """One line of the simulation table."""

    label: str
    target_net_result: Optional[Decimal]
    revenue: Decimal
    goods_purchased: Decimal
    expenses: Decimal
    net_before_social: Decimal
    social_contributions: Decimal
    total_tax: Decimal
    net_result: Decimal


def goods_for_revenue(revenue: Decimal, cost_coefficient: Decimal) -> Decimal:
    """Goods purchased implied by a revenue and a cost coefficient."""
    if cost_coefficient <= ZERO:
        return ZERO
    return revenue / cost_coefficient


def _project_at(
    revenue: Decimal,
    cost_coefficient: Decimal,
    expenses: Decimal,
    fiscal: FiscalParameters,
) -> FinancialPlanData:
    return project(
        revenue, goods_for_revenue(revenue, cost_coefficient), expenses, fiscal
    )


def solve_revenue(
    target_net: Number,
    cost_coefficient: Number,
    expenses: Number,
    fiscal: FiscalParameters,
    settings: Optional[SolverSettings] = None,
) -> SolverResult:
    """
    Find the revenue whose projected net result equals ``target_net``.

    Args:
        target_net: Wanted net result (0 for the break-even point).
        cost_coefficient: Revenue / goods purchased ratio kept constant
            during the search.
        expenses: Professional expenses kept constant during the search.
        fiscal: Fiscal parameters.
        settings: Solver constants; defaults to ``SolverSettings()``.

    Returns:
        A SolverResult. ``revenue`` is the midpoint of the last interval and
        ``net_result`` the net result projected at that revenue.
    """
    settings = settings or SolverSettings()
    target = to_decimal(target_net)
    coefficient = to_decimal(cost_coefficient)
    expenses = to_decimal(expenses)

    low = ZERO
    high = settings.ceiling
    net = ZERO
    converged = False
    iterations = 0

    for iterations in range(1, settings.max_iterations + 1):
        mid = (low + high) / TWO
        net = _project_at(mid, coefficient, expenses, fiscal).net_result

        if abs(net - target) < settings.tolerance:
            converged = True
            break

        if net < target:
            low = mid
        else:
            high = mid

    revenue = (low + high) / TWO
    if not converged:
        net = _project_at(revenue, coefficient, expenses, fiscal).net_result
        logger.warning(
            "Revenue search did not reach target %s after %d iterations "
            "(coefficient=%s, expenses=%s); best estimate %s",
            target,
            iterations,
            coefficient,
            expenses,
            revenue,
        )

    return SolverResult(
        revenue=revenue,
        net_result=net,
        iterations=iterations,
        converged=converged,
    )


def solve_revenue_for_target(
    target_net: Number,
    cost_coefficient: Number,
    expenses: Number,
    fiscal: FiscalParameters,
    settings: Optional[SolverSettings] = None,
) -> Decimal:
    """Revenue giving ``target_net``; best estimate when not reachable."""
    return solve_revenue(
        target_net, cost_coefficient, expenses, fiscal, settings
    ).revenue


def compute_scenario(
    label: str,
    revenue: Number,
    cost_coefficient: Number,
    expenses: Number,
    fiscal: FiscalParameters,
    target_net_result: Optional[Number] = None,
) -> SimulationScenario:
    """Project a revenue level and express it as a simulation line."""
    revenue = to_decimal(revenue)
    coefficient = to_decimal(cost_coefficient)
    plan = _project_at(revenue, coefficient, to_decimal(expenses), fiscal)

    return SimulationScenario(
        label=label,
        target_net_result=(
            None if target_net_result is None else to_decimal(target_net_result)
        ),
        revenue=plan.revenue,
        goods_purchased=plan.goods_purchased,
        expenses=plan.total_expenses,
        net_before_social=plan.net_before_social,
        social_contributions=plan.social_contributions,
        total_tax=plan.total_tax,
        net_result=plan.net_result,
    )


def build_simulation_scenarios(
    baseline: FinancialPlanData,
    fiscal: FiscalParameters,
    viability_threshold: Number = 0,
    ideal_revenue: Number = 0,
    fallback_coefficient: Number = Decimal("2.5"),
    settings: Optional[SolverSettings] = None,
) -> list[SimulationScenario]:
    """
    Build the simulation table for a baseline plan.

    The baseline provides the cost coefficient and the expenses. When the
    baseline has no purchases (coefficient 0), ``fallback_coefficient`` is
    used instead.

    The break-even line is always present; the viability and ideal lines
    are only added when their revenue is positive.
    """
    coefficient = baseline.cost_coefficient
    if coefficient <= ZERO:
        coefficient = to_decimal(fallback_coefficient)
        logger.warning(
            "Baseline has no purchases, using fallback coefficient %s", coefficient
        )
    expenses = baseline.total_expenses

    breakeven = solve_revenue(ZERO, coefficient, expenses, fiscal, settings)
    scenarios = [
        compute_scenario(
            BREAKEVEN_LABEL,
            breakeven.revenue,
            coefficient,
            expenses,
            fiscal,
            target_net_result=ZERO,
        )
    ]

    viability = to_decimal(viability_threshold)
    if viability > ZERO:
        scenarios.append(
            compute_scenario(VIABILITY_LABEL, viability, coefficient, expenses, fiscal)
        )

    ideal = to_decimal(ideal_revenue)
    if ideal > ZERO:
        scenarios.append(
            compute_scenario(IDEAL_LABEL, ideal, coefficient, expenses, fiscal)
        )

    return scenarios
