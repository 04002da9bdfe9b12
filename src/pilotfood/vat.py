# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
VAT rates and summary.

Amounts in PilotFood are excluding VAT. VAT only matters for cash: the VAT
collected on sales is paid back to the State, minus the VAT paid on
purchases (ingredients, packaging, variable costs).
"""

from dataclasses import dataclass
from decimal import Decimal

from .money import ZERO
from .products import DEFAULT_VAT_RATE

DEFAULT_PURCHASE_VAT_RATE = Decimal("20")


@dataclass(frozen=True)
class VatRates:
    """Default rates, in percent, used when a line has no rate of its own."""

    sales_rate: Decimal = DEFAULT_VAT_RATE
    purchase_rate: Decimal = DEFAULT_PURCHASE_VAT_RATE


@dataclass(frozen=True)
class VatSummary:
    """VAT collected on sales and deductible on purchases."""

    collected: Decimal = ZERO
    deductible: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        """VAT due to the State (negative when a refund is due)."""
        return self.collected - self.deductible
