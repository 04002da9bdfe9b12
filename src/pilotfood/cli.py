# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for PilotFood.

This module wires together the main building blocks of PilotFood:

- application configuration (fiscal parameters, tax brackets, pricing,
  simulation and display options),
- CSV inputs (annual sales, professional expenses, products, cost
  components),
- projection engine, revenue solver and stress test,
- budget versus actual comparison and product costing,
- product sensitivity and break-even analyses,
- view helpers (tabular rendering).

The CLI is intentionally thin: it does not implement any financial logic
itself. It orchestrates the underlying modules based on command-line
arguments and the configuration file.


Configuration
-------------
By default, the CLI reads ``pilotfood_config.toml`` in the current working
directory. If that file does not exist, built-in Belgian defaults are used.
Another file can be given with:

    --config PATH


Baseline plan
-------------
The ``plan``, ``simulate`` and ``stress`` commands work on a baseline plan,
given either directly:

    --revenue 100000 --goods 40000 --expenses 20000

or computed from CSV files for one year and mode:

    --sales sales.csv --expenses-file expenses.csv --year 2026 --mode budget

With ``--components components.csv``, product unit costs are computed from
their cost components instead of the ``unit_cost`` column of the sales.


Commands
--------
tax BASE
    Progressive income tax on a taxable base, detailed per bracket.

plan
    Full income statement of the baseline. With CSV inputs and no
    ``--mode``, years N and N+1 are shown for both modes.

simulate
    Break-even revenue (net result 0), plus the viability threshold and
    ideal revenue scenarios (from the configuration or ``--viability`` /
    ``--ideal``), plus an optional ``--target`` net result.

stress
    Baseline versus stressed plan, with ``--revenue-pct``,
    ``--coefficient-pct`` and ``--expense-pct`` variations.

sensitivity --products CSV
    Margin sensitivity of one product (``--product``) or of a category
    (``--category``) to cost, price and volume changes.

breakeven --products CSV
    Break-even volume per product for one channel, with fixed costs
    (``--fixed-costs``) split evenly between products.

compare --sales CSV
    Budget versus actual ('reel') indicators of a year, including VAT and
    cash-flow, then sales gaps per product and per category.

costs --components CSV
    Unit cost of each product from its ingredients, packaging and variable
    costs, with the deductible VAT.


Display modes and output
------------------------
- ``table``: print tables to stdout,
- ``csv``:   write CSV files only,
- ``both``:  do both.

CSV files are written to ``--output DIR`` (default ``data/output``) with a
timestamp-based name, e.g. ``plan_YYYY-MM-DD-HH-MM-SS.csv``.


Examples
--------
    python -m pilotfood.cli tax 21230
    python -m pilotfood.cli plan --revenue 100000 --goods 40000 --expenses 20000
    python -m pilotfood.cli simulate --revenue 100000 --goods 40000 \\
        --expenses 20000 --target 30000
    python -m pilotfood.cli --display-mode both stress --revenue 100000 \\
        --goods 40000 --expenses 20000 --revenue-pct -20 --expense-pct 10
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .aggregation import aggregate_plan_inputs, compute_plan_years, project_inputs
from .breakeven import allocate_fixed_cost, breakeven_summary, calculate_breakeven
from .brackets import compute_tax, compute_tax_details
from .comparison import budget_vs_reel
from .config import DEFAULT_CONFIG_FILE, AppConfig, default_app_config, load_app_config
from .costing import compute_product_costs
from .engine import FinancialPlanData, project
from .io import (
    MODES,
    read_cost_components,
    read_expenses,
    read_products,
    read_sales,
)
from .money import round_cents, to_decimal
from .products import CHANNELS, Product
from .sensitivity import category_sensitivity, product_sensitivity
from .simulation import build_simulation_scenarios, compute_scenario, solve_revenue
from .stress_test import StressTestParameters, run_stress_test
from .views import (
    breakeven_to_dataframe,
    indicator_gaps_to_dataframe,
    plan_to_dataframe,
    plan_years_to_dataframe,
    product_costs_to_dataframe,
    sales_gaps_to_dataframe,
    scenarios_to_dataframe,
    sensitivity_to_dataframe,
    stress_to_dataframe,
    tax_details_to_dataframe,
)

logger = logging.getLogger(__name__)


def _add_file_arguments(group, sales_required: bool = False) -> None:
    """CSV inputs of the plans: sales, expenses and cost components."""
    group.add_argument(
        "--sales",
        dest="sales_path",
        metavar="CSV_PATH",
        required=sales_required,
        help="Annual sales CSV (year, mode, product, channel, quantity, ...).",
    )
    group.add_argument(
        "--expenses-file",
        dest="expenses_path",
        metavar="CSV_PATH",
        help="Professional expenses CSV (year, mode, category, amount).",
    )
    group.add_argument(
        "--components",
        dest="components_path",
        metavar="CSV_PATH",
        help="Cost components CSV (product, type, name, quantity, unit_cost).",
    )
    group.add_argument(
        "--year",
        type=int,
        default=datetime.now().year,
        help="Year of the plan (default: current year).",
    )


def _add_baseline_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by the commands working on a baseline plan."""
    direct = parser.add_argument_group("baseline given directly")
    direct.add_argument("--revenue", help="Revenue excluding VAT.")
    direct.add_argument("--goods", help="Goods purchased.")
    direct.add_argument("--expenses", help="Total professional expenses.")

    files = parser.add_argument_group("baseline computed from CSV files")
    _add_file_arguments(files)
    files.add_argument(
        "--mode",
        choices=list(MODES),
        help="'budget' (forecast) or 'reel' (actual).",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m pilotfood.cli",
        description=(
            "PilotFood - Financial planning for food-transformation SMBs. "
            "Projects income statements with Belgian social contributions and "
            "income tax, solves break-even revenue, runs stress tests and "
            "product margin analyses."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of pilotfood and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            f"Path to the TOML configuration file. If omitted, "
            f"'{DEFAULT_CONFIG_FILE}' in the current directory is used when "
            f"present, built-in defaults otherwise."
        ),
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. If omitted, 'data/output' is used."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostic messages (default: WARNING).",
    )

    subparsers = ap.add_subparsers(dest="command", metavar="command")

    # tax
    tax = subparsers.add_parser("tax", help="Income tax on a taxable base.")
    tax.add_argument("base", help="Taxable base.")

    # plan
    plan = subparsers.add_parser("plan", help="Income statement of a plan.")
    _add_baseline_arguments(plan)

    # simulate
    simulate = subparsers.add_parser(
        "simulate", help="Break-even and target revenue scenarios."
    )
    _add_baseline_arguments(simulate)
    simulate.add_argument(
        "--viability",
        help="Viability threshold revenue (overrides the configuration).",
    )
    simulate.add_argument(
        "--ideal",
        help="Ideal revenue (overrides the configuration).",
    )
    simulate.add_argument(
        "--target",
        help="Also solve the revenue giving this net result.",
    )

    # stress
    stress = subparsers.add_parser("stress", help="Stress test of a plan.")
    _add_baseline_arguments(stress)
    stress.add_argument(
        "--revenue-pct",
        dest="revenue_pct",
        default="0",
        help="Revenue variation in percent (-50 to +50).",
    )
    stress.add_argument(
        "--coefficient-pct",
        dest="coefficient_pct",
        default="0",
        help="Cost coefficient variation in percent (-30 to +30).",
    )
    stress.add_argument(
        "--expense-pct",
        dest="expense_pct",
        default="0",
        help="Expenses variation in percent (-30 to +50).",
    )

    # sensitivity
    sensitivity = subparsers.add_parser(
        "sensitivity", help="Margin sensitivity of a product or category."
    )
    sensitivity.add_argument(
        "--products",
        dest="products_path",
        required=True,
        metavar="CSV_PATH",
        help="Products CSV (name, btc_price, unit_cost[, category, ...]).",
    )
    target_group = sensitivity.add_mutually_exclusive_group(required=True)
    target_group.add_argument("--product", help="Product name.")
    target_group.add_argument("--category", help="Product category.")
    sensitivity.add_argument(
        "--base-volume",
        dest="base_volume",
        default="100",
        help="Reference sold volume (default: 100).",
    )

    # breakeven
    breakeven = subparsers.add_parser(
        "breakeven", help="Break-even volume per product."
    )
    breakeven.add_argument(
        "--products",
        dest="products_path",
        required=True,
        metavar="CSV_PATH",
        help="Products CSV (name, btc_price, unit_cost[, category, vat_rate, volume]).",
    )
    breakeven.add_argument(
        "--fixed-costs",
        dest="fixed_costs",
        default="0",
        help="Total fixed costs, split evenly between products.",
    )
    breakeven.add_argument(
        "--channel",
        choices=list(CHANNELS),
        default="btc",
        help="Sales channel (default: btc).",
    )
    breakeven.add_argument(
        "--include-vat",
        dest="include_vat",
        action="store_true",
        help="Express prices and break-even revenue including VAT.",
    )

    # compare
    compare = subparsers.add_parser(
        "compare", help="Budget versus actual comparison of a year."
    )
    _add_file_arguments(compare, sales_required=True)

    # costs
    costs = subparsers.add_parser(
        "costs", help="Unit cost of products from their cost components."
    )
    costs.add_argument(
        "--components",
        dest="components_path",
        required=True,
        metavar="CSV_PATH",
        help="Cost components CSV (product, type, name, quantity, unit_cost).",
    )
    costs.add_argument(
        "--mode",
        choices=list(MODES),
        help="Keep the components of this mode (default: all components).",
    )

    return ap


def _load_config(args: argparse.Namespace) -> AppConfig:
    if args.config_path:
        return load_app_config(args.config_path)
    if Path(DEFAULT_CONFIG_FILE).is_file():
        return load_app_config()
    logger.info("No %s found, using built-in defaults", DEFAULT_CONFIG_FILE)
    return default_app_config()


def _read_records(
    args: argparse.Namespace,
) -> tuple[pd.DataFrame, pd.DataFrame, Optional[pd.DataFrame]]:
    """Sales, expenses and optional cost components given on the command line."""
    sales = read_sales(args.sales_path)
    if args.expenses_path:
        expenses = read_expenses(args.expenses_path)
    else:
        expenses = pd.DataFrame(columns=["year", "mode", "category", "amount"])
    components = None
    if args.components_path:
        components = read_cost_components(args.components_path)
    return sales, expenses, components


def _baseline_from_args(
    args: argparse.Namespace, config: AppConfig
) -> FinancialPlanData:
    """Build the baseline plan from direct values or CSV files."""
    if args.sales_path:
        sales, expenses, components = _read_records(args)
        mode = args.mode or "budget"
        product_costs = None
        if components is not None:
            product_costs = compute_product_costs(
                components, mode, config.vat.purchase_rate
            )
        inputs = aggregate_plan_inputs(
            sales,
            expenses,
            year=args.year,
            mode=mode,
            margins=config.margins,
            product_costs=product_costs,
            vat_rates=config.vat,
        )
        return project_inputs(inputs, config.fiscal)

    if args.revenue is None:
        raise ValueError("Provide either --revenue/--goods/--expenses or --sales.")

    return project(
        to_decimal(args.revenue),
        to_decimal(args.goods or 0),
        to_decimal(args.expenses or 0),
        config.fiscal,
    )


def _products_from_csv(path: str) -> tuple[list[Product], dict[str, float]]:
    df = read_products(path)
    products = [
        Product.create(
            name=row.name,
            btc_price=row.btc_price,
            unit_cost=row.unit_cost,
            category=row.category,
            vat_rate=row.vat_rate,
        )
        for row in df.itertuples(index=False)
    ]
    volumes = dict(zip(df["name"], df["volume"]))
    return products, volumes


def _handle_tax(args: argparse.Namespace, config: AppConfig) -> list:
    base = to_decimal(args.base)
    lines = compute_tax_details(base, config.fiscal.brackets)
    print(
        f"Taxable base: {round_cents(base)} → tax: "
        f"{round_cents(compute_tax(base, config.fiscal.brackets))}"
    )
    df = tax_details_to_dataframe(lines, config.decimals)
    return [("Tax per bracket", "tax", df)]


def _handle_plan(args: argparse.Namespace, config: AppConfig) -> list:
    if args.sales_path and args.mode is None:
        sales, expenses, components = _read_records(args)
        plans = compute_plan_years(
            sales,
            expenses,
            args.year,
            config.fiscal,
            config.margins,
            components=components,
            vat_rates=config.vat,
        )
        df = plan_years_to_dataframe(plans, config.decimals)
        return [(f"Financial plan {args.year}-{args.year + 1}", "plan_years", df)]

    baseline = _baseline_from_args(args, config)
    return [("Financial plan", "plan", plan_to_dataframe(baseline, config.decimals))]


def _handle_simulate(args: argparse.Namespace, config: AppConfig) -> list:
    baseline = _baseline_from_args(args, config)
    sim = config.simulation

    scenarios = build_simulation_scenarios(
        baseline,
        config.fiscal,
        viability_threshold=args.viability or sim.viability_threshold,
        ideal_revenue=args.ideal or sim.ideal_revenue,
        fallback_coefficient=sim.fallback_coefficient,
        settings=sim.solver,
    )

    if args.target is not None:
        coefficient = baseline.cost_coefficient
        if coefficient <= 0:
            coefficient = sim.fallback_coefficient
        result = solve_revenue(
            args.target,
            coefficient,
            baseline.total_expenses,
            config.fiscal,
            sim.solver,
        )
        if not result.converged:
            print(
                f"Warning: target net result {args.target} not reached "
                f"after {result.iterations} iterations; showing best estimate."
            )
        scenarios.append(
            compute_scenario(
                f"Objectif {args.target}",
                result.revenue,
                coefficient,
                baseline.total_expenses,
                config.fiscal,
                target_net_result=args.target,
            )
        )

    return [
        (
            "Simulation scenarios",
            "scenarios",
            scenarios_to_dataframe(scenarios, config.decimals),
        )
    ]


def _handle_stress(args: argparse.Namespace, config: AppConfig) -> list:
    baseline = _baseline_from_args(args, config)
    params = StressTestParameters.create(
        revenue_variation_pct=args.revenue_pct,
        cost_coefficient_variation_pct=args.coefficient_pct,
        expense_variation_pct=args.expense_pct,
    )
    summary = run_stress_test(baseline, params, config.fiscal)

    if summary.is_net_result_negative:
        print("Alert: the stressed net result is negative.")
    if summary.is_cash_at_risk:
        print("Alert: cash at risk (negative result before contributions or tax).")

    return [
        (
            "Stress test",
            "stress_test",
            stress_to_dataframe(summary, config.decimals),
        )
    ]


def _handle_sensitivity(args: argparse.Namespace, config: AppConfig) -> list:
    products, _ = _products_from_csv(args.products_path)

    if args.product:
        matches = [p for p in products if p.name == args.product]
        if not matches:
            raise ValueError(f"Product not found: {args.product!r}")
        grid = product_sensitivity(matches[0], base_volume=args.base_volume)
        title = f"Sensitivity - {args.product}"
    else:
        members = [p for p in products if p.category == args.category]
        if not members:
            raise ValueError(f"No product in category {args.category!r}")
        grid = category_sensitivity(members, base_volume=args.base_volume)
        title = f"Sensitivity - category {args.category}"

    return [(title, "sensitivity", sensitivity_to_dataframe(grid, config.decimals))]


def _handle_breakeven(args: argparse.Namespace, config: AppConfig) -> list:
    products, volumes = _products_from_csv(args.products_path)
    allocated = allocate_fixed_cost(args.fixed_costs, len(products))

    results = [
        calculate_breakeven(
            product,
            args.channel,
            current_volume=volumes.get(product.name, 0),
            allocated_fixed_cost=allocated,
            include_vat=args.include_vat,
            margins=config.margins,
        )
        for product in products
    ]
    summary = breakeven_summary(
        products,
        volumes,
        total_fixed_cost=args.fixed_costs,
        include_vat=args.include_vat,
        margins=config.margins,
    )
    print(
        f"Products above break-even (BTC): {summary.profitable_count}, "
        f"below: {summary.below_threshold_count}, "
        f"global break-even revenue: "
        f"{round_cents(summary.total_break_even_revenue)}"
    )

    return [
        (
            f"Break-even ({args.channel})",
            "breakeven",
            breakeven_to_dataframe(results, config.decimals),
        )
    ]


def _handle_compare(args: argparse.Namespace, config: AppConfig) -> list:
    sales, expenses, components = _read_records(args)
    result = budget_vs_reel(
        sales,
        expenses,
        args.year,
        config.fiscal,
        margins=config.margins,
        components=components,
        vat_rates=config.vat,
    )
    decimals = config.decimals
    return [
        (
            f"Budget vs reel {args.year}",
            "budget_vs_reel",
            indicator_gaps_to_dataframe(result.indicators, decimals),
        ),
        (
            f"Sales per product {args.year}",
            "budget_vs_reel_products",
            sales_gaps_to_dataframe(result.by_product, decimals),
        ),
        (
            f"Sales per category {args.year}",
            "budget_vs_reel_categories",
            sales_gaps_to_dataframe(result.by_category, decimals, "category"),
        ),
    ]


def _handle_costs(args: argparse.Namespace, config: AppConfig) -> list:
    components = read_cost_components(args.components_path)
    costs = compute_product_costs(components, args.mode, config.vat.purchase_rate)
    return [
        (
            "Product unit costs",
            "product_costs",
            product_costs_to_dataframe(costs, config.decimals),
        )
    ]

_HANDLERS = {
    "tax": _handle_tax,
    "plan": _handle_plan,
    "simulate": _handle_simulate,
    "stress": _handle_stress,
    "sensitivity": _handle_sensitivity,
    "breakeven": _handle_breakeven,
    "compare": _handle_compare,
    "costs": _handle_costs,
}


def _render(tables: list, display_mode: str, output_dir: Optional[str]) -> None:
    """Print tables and/or write them as CSV files."""
    if display_mode in {"table", "both"}:
        for title, _, df in tables:
            print()
            print(f"=== {title} ===")
            print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        out = Path(output_dir) if output_dir else Path("data/output")
        out.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for _, name, df in tables:
            path = out / f"{name}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the PilotFood CLI.

    Parses command-line arguments, loads the configuration, runs the
    requested command and renders its tables as console output and/or
    CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"pilotfood version {__version__}")
        return

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.error("a command is required (tax, plan, simulate, stress, ...).")

    try:
        config = _load_config(args)
        tables = _HANDLERS[args.command](args, config)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    display_mode = args.display_mode or config.display_mode
    _render(tables, display_mode, args.output_dir)


if __name__ == "__main__":
    main()
