from decimal import Decimal

import pandas as pd
import pytest

from pilotfood.aggregation import (
    aggregate_modes,
    aggregate_plan_inputs,
    compute_plan_years,
    project_inputs,
)
from pilotfood.fiscal import FiscalParameters
from pilotfood.costing import compute_product_costs
from pilotfood.io import (
    read_cost_components,
    read_expenses,
    read_products,
    read_sales,
)
from pilotfood.products import ChannelMargins
from pilotfood.vat import VatRates

SALES_CSV = """Year,Mode,Product,Channel,Quantity,BTC_Price,Unit_Cost,Unit_Price
2026,budget,Confiture,btc,1000,10,3,
2026,budget,Confiture,btb,500,10,3,
2026,budget,Confiture,distributeur,200,10,3,
2026,budget,Sirop,btc,100,8,2,9
2026,reel,Confiture,btc,900,10,3,
2027,budget,Confiture,btc,1200,10,3,
"""

EXPENSES_CSV = """year,mode,category,amount
2026,budget,Loyer,6000
2026,budget,Énergie,1500
2026,budget,Loyer,500
2026,reel,Loyer,6000
"""

PRODUCTS_CSV = """name,category,btc_price,unit_cost,vat_rate,volume
Confiture,Conserves,10,3,5.5,1000
Sirop,Boissons,8,2,,
"""


@pytest.fixture
def sales(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text(SALES_CSV, encoding="utf-8")
    return read_sales(path)


@pytest.fixture
def expenses(tmp_path):
    path = tmp_path / "expenses.csv"
    path.write_text(EXPENSES_CSV, encoding="utf-8")
    return read_expenses(path)


def test_read_sales_normalizes_columns(sales):
    assert list(sales.columns) == [
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
    assert sales.loc[2, "channel"] == "distributor"
    assert pd.isna(sales.loc[0, "unit_price"])
    assert sales.loc[3, "unit_price"] == 9


def test_read_sales_without_price_override(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text(
        "year,mode,product,channel,quantity,btc_price,unit_cost\n"
        "2026,budget,Confiture,btc,10,10,3\n",
        encoding="utf-8",
    )

    df = read_sales(path)

    assert df["unit_price"].isna().all()


@pytest.mark.parametrize(
    "content, message",
    [
        ("year,mode,product\n2026,budget,A\n", "missing column"),
        (
            "year,mode,product,channel,quantity,btc_price,unit_cost\n"
            "2026,prevision,A,btc,1,1,1\n",
            "Invalid mode",
        ),
        (
            "year,mode,product,channel,quantity,btc_price,unit_cost\n"
            "2026,budget,A,online,1,1,1\n",
            "Invalid channel",
        ),
        (
            "year,mode,product,channel,quantity,btc_price,unit_cost\n"
            "2026,budget,A,btc,many,1,1\n",
            "quantity",
        ),
        (
            "year,mode,product,channel,quantity,btc_price,unit_cost\n"
            "2026,budget,A,btc,inf,1,1\n",
            "quantity",
        ),
        (
            "year,mode,product,channel,quantity,btc_price,unit_cost,unit_price\n"
            "2026,budget,A,btc,1,1,1,\n"
            "2026,budget,A,btc,1,1,1,abc\n",
            r"unit_price.*line\(s\) 3",
        ),
        (
            "year,mode,product,channel,quantity,btc_price,unit_cost\n"
            "2026,budget,A,btc,1,1,three\n",
            "unit_cost",
        ),
    ],
)
def test_read_sales_rejects_invalid_files(tmp_path, content, message):
    path = tmp_path / "sales.csv"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        read_sales(path)


def test_read_products_defaults(tmp_path):
    path = tmp_path / "products.csv"
    path.write_text(PRODUCTS_CSV, encoding="utf-8")

    df = read_products(path)

    assert list(df["name"]) == ["Confiture", "Sirop"]
    assert df.loc[1, "vat_rate"] == 5.5
    assert df.loc[1, "volume"] == 0
    assert df.loc[0, "category"] == "Conserves"


def test_aggregate_uses_channel_prices(sales, expenses):
    inputs = aggregate_plan_inputs(sales, expenses, year=2026, mode="budget")

    # 1000 * 10 + 500 * 7 + 200 * 5.95 + 100 * 9 (override)
    assert inputs.revenue == Decimal("15590")
    assert inputs.goods_purchased == Decimal("5300")
    assert inputs.expenses == Decimal("8000")
    assert inputs.expenses_by_category == {
        "Loyer": Decimal("6500"),
        "Énergie": Decimal("1500"),
    }


def test_aggregate_with_custom_margins(sales, expenses):
    margins = ChannelMargins(btb_margin=Decimal("50"), distributor_margin=Decimal("0"))

    inputs = aggregate_plan_inputs(
        sales, expenses, year=2026, mode="budget", margins=margins
    )

    # 1000 * 10 + 500 * 5 + 200 * 5 + 100 * 9
    assert inputs.revenue == Decimal("14400")


def test_aggregate_empty_selection(sales, expenses):
    inputs = aggregate_plan_inputs(sales, expenses, year=2030, mode="reel")

    assert inputs.revenue == 0
    assert inputs.goods_purchased == 0
    assert inputs.expenses == 0
    assert inputs.expenses_by_category == {}


def test_project_inputs_carries_categories(sales, expenses):
    inputs = aggregate_plan_inputs(sales, expenses, year=2026, mode="budget")

    plan = project_inputs(inputs, FiscalParameters())

    assert plan.revenue == Decimal("15590")
    assert plan.total_expenses == Decimal("8000")
    assert plan.expenses_by_category["Loyer"] == Decimal("6500")


def test_compute_plan_years(sales, expenses):
    plans = compute_plan_years(sales, expenses, 2026, FiscalParameters())

    assert sorted(plans) == [2026, 2027]
    assert sorted(plans[2026]) == ["budget", "reel"]
    assert plans[2026]["reel"].revenue == Decimal("9000")
    assert plans[2026]["reel"].total_expenses == Decimal("6000")
    assert plans[2027]["budget"].revenue == Decimal("12000")
    assert plans[2027]["budget"].total_expenses == 0
    assert plans[2027]["reel"].revenue == 0


COMPONENTS_CSV = """Product,Type,Name,Quantity,Unit_Cost,VAT_Rate,Mode
Confiture,ingredient,Fraises,0.5,4,6,
Confiture,ingredient,Sucre,0.3,1,,
Confiture,packaging,Pot,1,0.4,,
Confiture,variable_cost,Énergie,1,0.2,,budget
Confiture,variable_cost,Énergie,1,0.3,,reel
Sirop,Packaging,Bouteille,1,0.5,,
"""


@pytest.fixture
def components(tmp_path):
    path = tmp_path / "components.csv"
    path.write_text(COMPONENTS_CSV, encoding="utf-8")
    return read_cost_components(path)


def test_read_cost_components(components):
    assert list(components.columns) == [
        "product",
        "component_type",
        "name",
        "quantity",
        "unit_cost",
        "vat_rate",
        "mode",
    ]
    assert components.loc[5, "component_type"] == "packaging"
    assert pd.isna(components.loc[0, "mode"])
    assert components.loc[3, "mode"] == "budget"
    assert pd.isna(components.loc[1, "vat_rate"])


@pytest.mark.parametrize(
    "content, message",
    [
        ("product,type,name\nA,ingredient,x\n", "missing column"),
        (
            "product,type,name,quantity,unit_cost\nA,labour,x,1,1\n",
            "Unknown cost component type",
        ),
        (
            "product,type,name,quantity,unit_cost,mode\nA,ingredient,x,1,1,plan\n",
            "Invalid mode",
        ),
        (
            "product,type,name,quantity,unit_cost,vat_rate\nA,ingredient,x,1,1,abc\n",
            "vat_rate",
        ),
    ],
)
def test_read_cost_components_rejects_invalid_files(tmp_path, content, message):
    path = tmp_path / "components.csv"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match=message):
        read_cost_components(path)


def test_aggregate_vat_from_sales_unit_costs(sales, expenses):
    inputs = aggregate_plan_inputs(sales, expenses, year=2026, mode="budget")

    # 15590 * 5.5 % collected, 5300 * 20 % deductible
    assert inputs.vat.collected == Decimal("857.45")
    assert inputs.vat.deductible == Decimal("1060")
    assert inputs.vat.net == Decimal("-202.55")
    assert inputs.cash_flow == Decimal("15590") + Decimal("857.45") - Decimal(
        "5300"
    ) - Decimal("1060") - Decimal("8000")


def test_aggregate_with_custom_vat_rates(sales, expenses):
    rates = VatRates(sales_rate=Decimal("6"), purchase_rate=Decimal("21"))

    inputs = aggregate_plan_inputs(
        sales, expenses, year=2026, mode="budget", vat_rates=rates
    )

    assert inputs.vat.collected == Decimal("935.4")
    assert inputs.vat.deductible == Decimal("1113")


def test_aggregate_with_product_costs(sales, expenses, components):
    costs = compute_product_costs(components, "budget")

    inputs = aggregate_plan_inputs(
        sales, expenses, year=2026, mode="budget", product_costs=costs
    )

    # Confiture: 1700 units at 2.9, Sirop: 100 units at 0.5
    assert inputs.goods_purchased == Decimal("4980")
    assert inputs.vat.deductible == Decimal("520")
    assert inputs.cash_flow == Decimal("2947.45")


def test_aggregate_breakdowns(sales, expenses):
    inputs = aggregate_plan_inputs(sales, expenses, year=2026, mode="budget")

    confiture = inputs.by_product["Confiture"]
    assert confiture.quantity == Decimal("1700")
    assert confiture.revenue == Decimal("14690")
    assert confiture.cost == Decimal("5100")
    assert confiture.margin == Decimal("9590")
    assert inputs.by_product["Sirop"].revenue == Decimal("900")
    assert list(inputs.by_category) == [""]
    assert inputs.by_category[""].revenue == Decimal("15590")


def test_aggregate_by_category(tmp_path):
    path = tmp_path / "sales.csv"
    path.write_text(
        "year,mode,product,category,channel,quantity,btc_price,unit_cost\n"
        "2026,budget,Confiture,Conserves,btc,10,10,3\n"
        "2026,budget,Pesto,Conserves,btc,5,6,2\n"
        "2026,budget,Sirop,Boissons,btc,4,8,2\n",
        encoding="utf-8",
    )
    sales = read_sales(path)
    expenses = pd.DataFrame(columns=["year", "mode", "category", "amount"])

    inputs = aggregate_plan_inputs(sales, expenses, year=2026, mode="budget")

    assert inputs.by_category["Conserves"].quantity == Decimal("15")
    assert inputs.by_category["Conserves"].revenue == Decimal("130")
    assert inputs.by_category["Boissons"].cost == Decimal("8")


def test_aggregate_requires_a_unit_cost(tmp_path, components):
    path = tmp_path / "sales.csv"
    path.write_text(
        "year,mode,product,channel,quantity,btc_price,unit_cost\n"
        "2026,budget,Confiture,btc,10,10,\n"
        "2026,budget,Pesto,btc,5,6,\n",
        encoding="utf-8",
    )
    sales = read_sales(path)
    expenses = pd.DataFrame(columns=["year", "mode", "category", "amount"])
    costs = compute_product_costs(components, "budget")

    with pytest.raises(ValueError, match="No unit cost for product 'Pesto'"):
        aggregate_plan_inputs(sales, expenses, 2026, "budget", product_costs=costs)


def test_aggregate_modes_uses_components_of_each_mode(sales, expenses, components):
    inputs = aggregate_modes(sales, expenses, 2026, components=components)

    # Confiture costs 2.9 in budget and 3.0 in reel
    assert inputs["budget"].goods_purchased == Decimal("4980")
    assert inputs["reel"].goods_purchased == Decimal("2700")


def test_compute_plan_years_with_components(sales, expenses, components):
    plans = compute_plan_years(
        sales, expenses, 2026, FiscalParameters(), components=components
    )

    assert plans[2026]["budget"].goods_purchased == Decimal("4980")
    assert plans[2027]["budget"].goods_purchased == Decimal("3480")
