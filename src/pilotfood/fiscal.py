# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Fiscal parameters for the Belgian self-employed income statement.

These parameters are an explicit input of every projection. They come from
the user's settings (see config.py) and are never read from global state.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .brackets import DEFAULT_TAX_BRACKETS, TaxBracket, validate_brackets
from .money import to_decimal

DEFAULT_SOCIAL_CONTRIBUTION_RATE = Decimal("20.5")
DEFAULT_MUNICIPAL_SURCHARGE_RATE = Decimal("7")
DEFAULT_BASE_EXEMPT_ALLOWANCE = Decimal("10570")
DEFAULT_ALLOWANCE_PER_CHILD = Decimal("1850")


@dataclass(frozen=True)
class FiscalParameters:
    """
    Inputs of the tax part of a projection.

    Attributes:
        social_contribution_rate: Social contributions, in percent of the
            net result before social contributions.
        municipal_surcharge_rate: Municipal surcharge ("taxe communale"),
            in percent of the base income tax.
        dependent_children_count: Number of dependent children.
        base_exempt_allowance: Tax-free allowance ("quotité exemptée").
        allowance_per_child: Extra allowance per dependent child.
        brackets: Progressive income tax scale.
    """

    social_contribution_rate: Decimal = DEFAULT_SOCIAL_CONTRIBUTION_RATE
    municipal_surcharge_rate: Decimal = DEFAULT_MUNICIPAL_SURCHARGE_RATE
    dependent_children_count: int = 0
    base_exempt_allowance: Decimal = DEFAULT_BASE_EXEMPT_ALLOWANCE
    allowance_per_child: Decimal = DEFAULT_ALLOWANCE_PER_CHILD
    brackets: tuple[TaxBracket, ...] = field(default=DEFAULT_TAX_BRACKETS)

    @property
    def exempt_allowance(self) -> Decimal:
        """Total tax-free allowance, children included."""
        return self.base_exempt_allowance + self.allowance_per_child * Decimal(
            self.dependent_children_count
        )

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        brackets: Any = None,
    ) -> "FiscalParameters":
        """
        Build parameters from a configuration table.

        Missing keys keep their default value. When ``brackets`` is None
        the default Belgian scale is used; otherwise the given brackets are
        validated and stored in canonical order.

        Raises:
            ValueError: if a value is not numeric or negative.
            BracketConfigurationError: if the brackets are inconsistent.
        """
        def _rate(key: str, default: Decimal) -> Decimal:
            raw = data.get(key)
            if raw is None:
                return default
            try:
                value = to_decimal(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for 'fiscal.{key}': {raw!r}") from exc
            if value < 0:
                raise ValueError(f"'fiscal.{key}' cannot be negative.")
            return value

        raw_children = data.get("dependent_children_count", 0)
        try:
            children = int(raw_children)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                "Invalid value for 'fiscal.dependent_children_count'. "
                "Expected an integer."
            ) from exc
        if children < 0:
            raise ValueError("'fiscal.dependent_children_count' cannot be negative.")

        scale = DEFAULT_TAX_BRACKETS if brackets is None else tuple(
            validate_brackets(list(brackets))
        )

        return cls(
            social_contribution_rate=_rate(
                "social_contribution_rate", DEFAULT_SOCIAL_CONTRIBUTION_RATE
            ),
            municipal_surcharge_rate=_rate(
                "municipal_surcharge_rate", DEFAULT_MUNICIPAL_SURCHARGE_RATE
            ),
            dependent_children_count=children,
            base_exempt_allowance=_rate(
                "base_exempt_allowance", DEFAULT_BASE_EXEMPT_ALLOWANCE
            ),
            allowance_per_child=_rate(
                "allowance_per_child", DEFAULT_ALLOWANCE_PER_CHILD
            ),
            brackets=scale,
        )
