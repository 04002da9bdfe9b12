# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for PilotFood.

This module is responsible for:
- loading the application configuration from a TOML file,
- validating the tax bracket scale once, at load time,
- exposing typed dataclasses used by the rest of the application.

Example ``pilotfood_config.toml``::

    [fiscal]
    social_contribution_rate = 20.5
    municipal_surcharge_rate = 7.0
    dependent_children_count = 0
    base_exempt_allowance = 10570
    allowance_per_child = 1850

    [[tax_brackets]]
    lower_bound = 0
    upper_bound = 15820
    rate = 25
    order = 1

    [[tax_brackets]]
    lower_bound = 15820
    rate = 40
    order = 2

    [pricing]
    btb_margin = 30
    distributor_margin = 15

    [simulation]
    viability_threshold = 60000
    ideal_revenue = 120000
    fallback_coefficient = 2.5
    ceiling = 10000000
    max_iterations = 100
    tolerance = 1

    [vat]
    sales_rate = 5.5
    purchase_rate = 20

    [display]
    mode = "table"
    decimals = 2
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import tomllib  # Python 3.11+

from .brackets import TaxBracket
from .fiscal import FiscalParameters
from .money import to_decimal
from .products import ChannelMargins
from .simulation import SolverSettings
from .vat import VatRates

DEFAULT_CONFIG_FILE = "pilotfood_config.toml"
DISPLAY_MODES: tuple[str, ...] = ("table", "csv", "both")


@dataclass(frozen=True)
class SimulationConfig:
    """Inputs of the revenue simulation table."""

    viability_threshold: Decimal = Decimal("0")
    ideal_revenue: Decimal = Decimal("0")
    fallback_coefficient: Decimal = Decimal("2.5")
    solver: SolverSettings = field(default_factory=SolverSettings)


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for PilotFood.

    This aggregates:
    - the fiscal parameters (rates, allowances, tax brackets),
    - the channel pricing margins,
    - the simulation options,
    - the default VAT rates,
    - display options for tables.
    """

    fiscal: FiscalParameters
    margins: ChannelMargins
    simulation: SimulationConfig
    display_mode: str
    decimals: int
    vat: VatRates = field(default_factory=VatRates)


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _decimal(section: Mapping[str, Any], name: str, key: str, default: Any) -> Decimal:
    value = section.get(key, default)
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise ValueError(
            f"Invalid value for '{name}.{key}' in the configuration: {value!r}."
        ) from exc


def _parse_brackets(raw: Mapping[str, Any]) -> Optional[list[TaxBracket]]:
    """
    Parse the [[tax_brackets]] array of tables.

    Returns None when the configuration does not define any bracket, so
    that the default scale is used.
    """
    items = raw.get("tax_brackets")
    if items is None:
        return None
    if not isinstance(items, list):
        raise ValueError(
            "'tax_brackets' must be an array of tables ([[tax_brackets]])."
        )

    brackets: list[TaxBracket] = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, Mapping):
            raise ValueError(f"Invalid tax bracket #{index}, expected a table.")
        try:
            brackets.append(
                TaxBracket.create(
                    lower_bound=item["lower_bound"],
                    upper_bound=item.get("upper_bound"),
                    rate=item["rate"],
                    order=item.get("order", index),
                )
            )
        except KeyError as exc:
            raise ValueError(
                f"Tax bracket #{index} is missing '{exc.args[0]}'."
            ) from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid values in tax bracket #{index}.") from exc

    return brackets


def _parse_simulation(raw: Mapping[str, Any]) -> SimulationConfig:
    section = _section(raw, "simulation")
    defaults = SolverSettings()

    try:
        max_iterations = int(section.get("max_iterations", defaults.max_iterations))
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'simulation.max_iterations'. Expected an integer."
        ) from exc
    if max_iterations < 1:
        raise ValueError("'simulation.max_iterations' must be at least 1.")

    solver = SolverSettings(
        ceiling=_decimal(section, "simulation", "ceiling", defaults.ceiling),
        max_iterations=max_iterations,
        tolerance=_decimal(section, "simulation", "tolerance", defaults.tolerance),
    )
    if solver.ceiling <= 0 or solver.tolerance <= 0:
        raise ValueError(
            "'simulation.ceiling' and 'simulation.tolerance' must be positive."
        )

    return SimulationConfig(
        viability_threshold=_decimal(section, "simulation", "viability_threshold", 0),
        ideal_revenue=_decimal(section, "simulation", "ideal_revenue", 0),
        fallback_coefficient=_decimal(
            section, "simulation", "fallback_coefficient", "2.5"
        ),
        solver=solver,
    )


def parse_app_config(raw: Mapping[str, Any]) -> AppConfig:
    """
    Build an AppConfig from parsed TOML data.

    Every section is optional; missing values fall back to the Belgian
    defaults used by the application settings screen.
    """
    # 1) Fiscal parameters and tax scale
    fiscal = FiscalParameters.from_mapping(
        _section(raw, "fiscal"), brackets=_parse_brackets(raw)
    )

    # 2) Channel pricing
    pricing = _section(raw, "pricing")
    defaults = ChannelMargins()
    margins = ChannelMargins(
        btb_margin=_decimal(pricing, "pricing", "btb_margin", defaults.btb_margin),
        distributor_margin=_decimal(
            pricing, "pricing", "distributor_margin", defaults.distributor_margin
        ),
    )

    # 3) Simulation options
    simulation = _parse_simulation(raw)

    # 4) VAT rates
    vat_section = _section(raw, "vat")
    vat_defaults = VatRates()
    vat = VatRates(
        sales_rate=_decimal(vat_section, "vat", "sales_rate", vat_defaults.sales_rate),
        purchase_rate=_decimal(
            vat_section, "vat", "purchase_rate", vat_defaults.purchase_rate
        ),
    )
    if vat.sales_rate < 0 or vat.purchase_rate < 0:
        raise ValueError("VAT rates in [vat] cannot be negative.")

    # 5) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in DISPLAY_MODES:
        raise ValueError(
            f"Invalid 'display.mode' {display_mode!r}, "
            f"expected one of: {', '.join(DISPLAY_MODES)}."
        )
    raw_decimals = display_section.get("decimals", 2)
    if isinstance(raw_decimals, bool) or not isinstance(raw_decimals, int):
        raise ValueError(
            f"Invalid value for 'display.decimals': {raw_decimals!r}. "
            "Expected an integer."
        )
    if not 0 <= raw_decimals <= 10:
        raise ValueError("'display.decimals' must be between 0 and 10.")
    decimals = raw_decimals

    return AppConfig(
        fiscal=fiscal,
        margins=margins,
        simulation=simulation,
        display_mode=display_mode,
        decimals=decimals,
        vat=vat,
    )


def default_app_config() -> AppConfig:
    """Configuration used when no configuration file is available."""
    return parse_app_config({})


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the PilotFood application configuration from a TOML file.

    Parameters
    ----------
    config_path :
        Path to the TOML configuration file. When omitted,
        ``pilotfood_config.toml`` in the current directory is used.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file cannot be parsed or holds invalid values
        (including ``BracketConfigurationError`` for an inconsistent
        tax scale).
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    return parse_app_config(_load_toml(config_file))
