# PilotFood - Financial planning engine for food-transformation SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for PilotFood.

This module reads the CSV files that feed the projections and normalizes
them into simple, consistent DataFrames.

Expected input formats
----------------------
Column names are case-insensitive. Extra columns are ignored.

1) Annual sales
   ------------
       year, mode, product, channel, quantity, btc_price
           [, unit_cost, unit_price, category, vat_rate]

   - ``year``:       calendar year of the sales (int)
   - ``mode``:       'budget' (forecast) or 'reel' (actual)
   - ``product``:    product name
   - ``channel``:    'btc', 'btb' or 'distributor' ('distributeur' accepted)
   - ``quantity``:   units sold over the year
   - ``btc_price``:  consumer price excluding VAT of the product
   - ``unit_cost``:  variable cost of one unit; may be left empty for
                     products whose cost comes from cost components (4)
   - ``unit_price``: optional price override for this line; when empty, the
                     channel price derived from ``btc_price`` is used
   - ``category``:   optional product category
   - ``vat_rate``:   optional sales VAT rate in percent (default 5.5)

2) Professional expenses
   ---------------------
       year, mode, category, amount

   - ``amount`` is the amount excluding VAT, positive for an expense.

3) Products
   --------
       name, btc_price, unit_cost[, category, vat_rate, volume]

4) Cost components
   ---------------
       product, type, name, quantity, unit_cost[, vat_rate, mode]

   - ``type``:     'ingredient', 'packaging' or 'variable_cost'
   - ``quantity``: quantity used for one unit of the product
   - ``vat_rate``: purchase VAT rate in percent (default 20)
   - ``mode``:     'budget' or 'reel'; empty lines apply to both modes

If a file does not match its format, a clear ValueError is raised.
"""

import os
from collections.abc import Iterable
from typing import Union

import pandas as pd

from .costing import normalize_component_type
from .products import normalize_channel

MODES: tuple[str, ...] = ("budget", "reel")

PathLike = Union[str, "os.PathLike[str]"]


def _read_csv(path: PathLike, required: Iterable[str], kind: str) -> pd.DataFrame:
    df = pd.read_csv(path)
    df.columns = [str(c).lower().strip() for c in df.columns]

    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            f"Invalid {kind} file structure, missing column(s): "
            f"{', '.join(missing)}. Expected: {', '.join(required)}."
        )
    return df


def _to_numeric(
    df: pd.DataFrame, columns: Iterable[str], kind: str, optional: bool = False
) -> None:
    """
    Coerce columns to numbers in place.

    Empty cells are allowed only when ``optional`` is True; text that is not
    a number and infinite values are always rejected.
    """
    for col in columns:
        raw = df[col]
        values = pd.to_numeric(raw, errors="coerce")
        invalid = values.isin([float("inf"), float("-inf")])
        if optional:
            filled = raw.notna() & (raw.astype(str).str.strip() != "")
            invalid |= values.isna() & filled
        else:
            invalid |= values.isna()
        if invalid.any():
            rows = ", ".join(str(i + 2) for i in df.index[invalid.to_numpy()][:5])
            raise ValueError(
                f"Invalid numeric values in {kind} column '{col}' (line(s) {rows})."
            )
        df[col] = values


def _normalize_mode(df: pd.DataFrame, kind: str) -> None:
    df["mode"] = df["mode"].astype(str).str.strip().str.lower()
    invalid = sorted(set(df["mode"]) - set(MODES))
    if invalid:
        raise ValueError(
            f"Invalid mode(s) in {kind} file: {', '.join(invalid)}. "
            f"Expected one of: {', '.join(MODES)}."
        )


def read_sales(path: PathLike) -> pd.DataFrame:
    """
    Read annual sales from a CSV file.

    Returns
    -------
    pandas.DataFrame
        Columns: year (int), mode, product, channel, quantity, btc_price,
        unit_cost, unit_price, vat_rate (float, NaN when empty) and
        category ("" when empty).

    Raises
    ------
    ValueError
        If columns are missing or values are invalid.
    """
    required = ("year", "mode", "product", "channel", "quantity", "btc_price")
    df = _read_csv(path, required, "sales")

    d = df.copy()
    _to_numeric(d, ("year", "quantity", "btc_price"), "sales")
    d["year"] = d["year"].astype(int)
    _normalize_mode(d, "sales")

    try:
        d["channel"] = d["channel"].map(normalize_channel)
    except ValueError as exc:
        raise ValueError(f"Invalid channel in sales file: {exc}") from exc

    for col in ("unit_cost", "unit_price", "vat_rate"):
        if col in d.columns:
            _to_numeric(d, (col,), "sales", optional=True)
        else:
            d[col] = float("nan")

    if "category" not in d.columns:
        d["category"] = ""
    d["category"] = d["category"].fillna("").astype(str).str.strip()
    d["product"] = d["product"].astype(str)
    return d[
        [
            "year",
            "mode",
            "product",
            "category",
            "channel",
            "quantity",
            "btc_price",
            "unit_cost",
            "unit_price",
            "vat_rate",
        ]
    ].reset_index(drop=True)


def read_expenses(path: PathLike) -> pd.DataFrame:
    """
    Read professional expenses from a CSV file.

    Returns a DataFrame with columns: year (int), mode, category, amount.
    """
    df = _read_csv(path, ("year", "mode", "category", "amount"), "expenses")

    d = df.copy()
    _to_numeric(d, ("year", "amount"), "expenses")
    d["year"] = d["year"].astype(int)
    _normalize_mode(d, "expenses")
    d["category"] = d["category"].fillna("").astype(str).str.strip()

    return d[["year", "mode", "category", "amount"]].reset_index(drop=True)


def read_products(path: PathLike) -> pd.DataFrame:
    """
    Read a product list from a CSV file.

    Returns a DataFrame with columns: name, category, btc_price, unit_cost,
    vat_rate, volume. Missing optional columns get defaults (no category,
    5.5 % VAT, volume 0).
    """
    df = _read_csv(path, ("name", "btc_price", "unit_cost"), "products")

    d = df.copy()
    if "category" not in d.columns:
        d["category"] = None
    if "vat_rate" not in d.columns:
        d["vat_rate"] = 5.5
    if "volume" not in d.columns:
        d["volume"] = 0

    d["vat_rate"] = d["vat_rate"].fillna(5.5)
    d["volume"] = d["volume"].fillna(0)
    _to_numeric(d, ("btc_price", "unit_cost", "vat_rate", "volume"), "products")
    d["name"] = d["name"].astype(str)
    d["category"] = d["category"].astype(object).where(d["category"].notna(), None)

    return d[
        ["name", "category", "btc_price", "unit_cost", "vat_rate", "volume"]
    ].reset_index(drop=True)


def read_cost_components(path: PathLike) -> pd.DataFrame:
    """
    Read the cost components of products from a CSV file.

    Returns a DataFrame with columns: product, component_type, name,
    quantity, unit_cost, vat_rate (NaN when empty), mode (None when the
    line applies to both modes).
    """
    required = ("product", "type", "name", "quantity", "unit_cost")
    df = _read_csv(path, required, "cost components")

    d = df.copy()
    _to_numeric(d, ("quantity", "unit_cost"), "cost components")
    if "vat_rate" in d.columns:
        _to_numeric(d, ("vat_rate",), "cost components", optional=True)
    else:
        d["vat_rate"] = float("nan")

    try:
        d["component_type"] = d["type"].map(normalize_component_type)
    except ValueError as exc:
        raise ValueError(f"Invalid cost components file: {exc}") from exc

    if "mode" in d.columns:
        modes = d["mode"].fillna("").astype(str).str.strip().str.lower()
        invalid = sorted(set(modes) - set(MODES) - {""})
        if invalid:
            raise ValueError(
                f"Invalid mode(s) in cost components file: {', '.join(invalid)}. "
                f"Expected one of: {', '.join(MODES)}."
            )
        d["mode"] = modes.where(modes != "", None)
    else:
        d["mode"] = None

    d["product"] = d["product"].astype(str)
    d["name"] = d["name"].fillna("").astype(str)
    columns = [
        "product",
        "component_type",
        "name",
        "quantity",
        "unit_cost",
        "vat_rate",
        "mode",
    ]
    return d[columns].reset_index(drop=True)
