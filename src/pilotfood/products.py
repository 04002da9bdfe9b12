# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Products and sales channel pricing.

A product is sold through three channels, each with its own price tier:

- BTC ("business to consumer"): reference price, set by the user,
- BTB ("business to business"): BTC price minus the BTB margin,
- distributor: BTB price minus the distributor margin.

With the default margins (30 % and 15 %), a product sold 10 € BTC is sold
7 € BTB and 5.95 € to distributors.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .money import ONE, HUNDRED, Number, to_decimal

CHANNELS: tuple[str, ...] = ("btc", "btb", "distributor")

DEFAULT_BTB_MARGIN = Decimal("30")
DEFAULT_DISTRIBUTOR_MARGIN = Decimal("15")
DEFAULT_VAT_RATE = Decimal("5.5")


@dataclass(frozen=True)
class ChannelMargins:
    """Discounts granted to each channel, in percent."""

    btb_margin: Decimal = DEFAULT_BTB_MARGIN
    distributor_margin: Decimal = DEFAULT_DISTRIBUTOR_MARGIN


def normalize_channel(channel: str) -> str:
    """
    Return the canonical channel name.

    'distributeur' is accepted as an alias of 'distributor'.

    Raises:
        ValueError: for an unknown channel.
    """
    value = str(channel).strip().lower()
    if value == "distributeur":
        value = "distributor"
    if value not in CHANNELS:
        raise ValueError(
            f"Unknown sales channel {channel!r}, expected one of {', '.join(CHANNELS)}."
        )
    return value


def channel_price(
    btc_price: Number,
    channel: str,
    margins: Optional[ChannelMargins] = None,
) -> Decimal:
    """Price excluding VAT of a product on a channel, from its BTC price."""
    margins = margins or ChannelMargins()
    btc = to_decimal(btc_price)
    btb = btc * (ONE - margins.btb_margin / HUNDRED)

    channel = normalize_channel(channel)
    if channel == "btc":
        return btc
    if channel == "btb":
        return btb
    return btb * (ONE - margins.distributor_margin / HUNDRED)


@dataclass(frozen=True)
class Product:
    """
    A product with its unit cost.

    Attributes:
        name: Product name.
        category: Product category, or None.
        btc_price: Consumer price excluding VAT.
        unit_cost: Variable cost of one unit (ingredients, packaging and
            variable costs).
        vat_rate: Sales VAT rate, in percent.
    """

    name: str
    category: Optional[str]
    btc_price: Decimal
    unit_cost: Decimal
    vat_rate: Decimal = DEFAULT_VAT_RATE

    @classmethod
    def create(
        cls,
        name: str,
        btc_price: Number,
        unit_cost: Number,
        category: Optional[str] = None,
        vat_rate: Number = DEFAULT_VAT_RATE,
    ) -> "Product":
        return cls(
            name=name,
            category=category,
            btc_price=to_decimal(btc_price),
            unit_cost=to_decimal(unit_cost),
            vat_rate=to_decimal(vat_rate),
        )

    def price(self, channel: str, margins: Optional[ChannelMargins] = None) -> Decimal:
        return channel_price(self.btc_price, channel, margins)
