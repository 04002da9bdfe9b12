# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Core projection engine for PilotFood.

This module turns three aggregates (revenue, goods purchased, professional
expenses) and a set of fiscal parameters into a complete income statement
for a self-employed food entrepreneur:

    revenue
    - goods purchased                 = gross profit
    - professional expenses           = net result before social contributions
    - social contributions            = net result before tax
    - (tax-free allowance)            -> taxable base
    - base income tax (brackets)
    - municipal surcharge             = total tax
                                      = net result (annual compensation)

Every figure of ``FinancialPlanData`` is derived from the inputs; nothing is
stored or mutated between calls, so ``project()`` can be called freely from
simulations and stress tests.

Business rules
--------------
- No social contribution is due on a loss.
- The taxable base never goes below zero (no tax refund is modelled).
- A zero purchase amount gives a zero cost coefficient. Callers presenting
  the coefficient must read 0 as "not defined".

Key components
--------------
- FinancialPlanData :
    Immutable result of a projection.
- project(revenue, goods_purchased, expenses, fiscal) :
    The projection pipeline.
- empty_plan(fiscal) :
    Projection of an empty year.
- INDICATOR_LABELS :
    Display labels of the income statement lines, in statement order.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .brackets import compute_tax
from .fiscal import FiscalParameters
from .money import ZERO, Number, percent_of, to_decimal

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal("12")

# Income statement lines, in display order.
INDICATOR_LABELS: dict[str, str] = {
    "revenue": "Chiffre d'affaires",
    "goods_purchased": "Achats marchandises",
    "cost_coefficient": "Coefficient",
    "gross_profit": "Bénéfice brut",
    "total_expenses": "Charges professionnelles",
    "net_before_social": "Résultat indépendant",
    "social_contributions": "Cotisations sociales",
    "net_before_tax": "Bénéfice net avant impôts",
    "exempt_allowance": "Quotité exemptée",
    "taxable_base": "Base imposable",
    "base_tax": "Impôt de base",
    "municipal_tax": "Impôt communal",
    "total_tax": "Impôt total",
    "net_result": "Bénéfice de l'exercice",
    "annual_compensation": "Rémunération annuelle",
    "monthly_compensation": "Rémunération mensuelle",
}


@dataclass(frozen=True)
class FinancialPlanData:
    """
    Full income statement produced by ``project()``.

    All amounts are Decimals at full precision. ``cost_coefficient`` is a
    ratio (revenue / goods purchased), not an amount.
    """

    revenue: Decimal
    goods_purchased: Decimal
    cost_coefficient: Decimal
    gross_profit: Decimal
    total_expenses: Decimal
    net_before_social: Decimal
    social_contributions: Decimal
    net_before_tax: Decimal
    exempt_allowance: Decimal
    taxable_base: Decimal
    base_tax: Decimal
    municipal_tax: Decimal
    total_tax: Decimal
    net_result: Decimal
    annual_compensation: Decimal
    monthly_compensation: Decimal
    expenses_by_category: Mapping[str, Decimal] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Decimal]:
        """Flat mapping of indicator key -> value, in statement order."""
        return {key: getattr(self, key) for key in INDICATOR_LABELS}


def project(
    revenue: Number,
    goods_purchased: Number,
    expenses: Number,
    fiscal: FiscalParameters,
    expenses_by_category: Optional[Mapping[str, Number]] = None,
) -> FinancialPlanData:
    """Project a full income statement from the three business aggregates.

    Args:
        revenue: Turnover excluding VAT ("chiffre d'affaires").
        goods_purchased: Cost of goods bought or produced for the sales.
        expenses: Total professional expenses.
        fiscal: Fiscal parameters (rates, allowances, tax brackets).
        expenses_by_category: Optional breakdown of ``expenses``, carried
            through unchanged for display.

    Returns:
        A FinancialPlanData instance.
    """
    revenue = to_decimal(revenue)
    goods = to_decimal(goods_purchased)
    expenses = to_decimal(expenses)

    # 1) Margin part
    coefficient = revenue / goods if goods > ZERO else ZERO
    gross_profit = revenue - goods
    net_before_social = gross_profit - expenses

    # 2) Social contributions, only on a positive result
    if net_before_social > ZERO:
        social = percent_of(net_before_social, fiscal.social_contribution_rate)
    else:
        social = ZERO
    net_before_tax = net_before_social - social

    # 3) Income tax
    exempt_allowance = fiscal.exempt_allowance
    taxable_base = max(ZERO, net_before_tax - exempt_allowance)
    base_tax = compute_tax(taxable_base, fiscal.brackets)
    municipal_tax = percent_of(base_tax, fiscal.municipal_surcharge_rate)
    total_tax = base_tax + municipal_tax

    # 4) What is left for the entrepreneur
    net_result = net_before_tax - total_tax

    categories = {
        str(name): to_decimal(amount)
        for name, amount in (expenses_by_category or {}).items()
    }

    logger.debug(
        "Projected revenue=%s goods=%s expenses=%s -> net_result=%s",
        revenue,
        goods,
        expenses,
        net_result,
    )

    return FinancialPlanData(
        revenue=revenue,
        goods_purchased=goods,
        cost_coefficient=coefficient,
        gross_profit=gross_profit,
        total_expenses=expenses,
        net_before_social=net_before_social,
        social_contributions=social,
        net_before_tax=net_before_tax,
        exempt_allowance=exempt_allowance,
        taxable_base=taxable_base,
        base_tax=base_tax,
        municipal_tax=municipal_tax,
        total_tax=total_tax,
        net_result=net_result,
        annual_compensation=net_result,
        monthly_compensation=net_result / MONTHS_PER_YEAR,
        expenses_by_category=categories,
    )


def empty_plan(fiscal: FiscalParameters) -> FinancialPlanData:
    """Projection of a year without any sale, purchase or expense."""
    return project(ZERO, ZERO, ZERO, fiscal)
