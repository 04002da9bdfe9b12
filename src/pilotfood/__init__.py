# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
PilotFood
---------

Financial planning engine for food-transformation entrepreneurs
(artisans, small producers, caterers). It models the income statement of a
self-employed activity under Belgian rules and answers the questions that
drive a business plan.

Main capabilities:
- progressive income tax by brackets ("tranches"), with a configurable
  scale validated at load time,
- full income statement projection: revenue, gross profit, social
  contributions, tax-free allowance, income tax and municipal surcharge,
  net result and monthly compensation,
- revenue solver: break-even revenue and revenue needed for a target net
  result,
- stress tests on revenue, cost coefficient and expenses,
- aggregation of annual sales and expenses (budget vs. actual) into plans,
- budget versus actual comparison per indicator, product and category,
- product unit costs from ingredients, packaging and variable costs, and
  the VAT collected and deductible,
- product margin sensitivity and break-even volume per sales channel.

All amounts are computed with ``decimal.Decimal`` and rounded to cents only
when presented.

Version: 0.1.0

Usage:
    python -m pilotfood.cli --help
"""

__all__ = [
    "money",
    "brackets",
    "fiscal",
    "engine",
    "simulation",
    "stress_test",
    "aggregation",
    "comparison",
    "costing",
    "vat",
    "products",
    "sensitivity",
    "breakeven",
    "config",
    "views",
    "io",
]

__version__ = "0.1.0"
