from dataclasses import replace
from decimal import Decimal

import pytest

from pilotfood.engine import INDICATOR_LABELS, empty_plan, project
from pilotfood.fiscal import FiscalParameters
from pilotfood.money import round_cents, to_decimal


@pytest.fixture
def fiscal():
    return FiscalParameters()


def test_reference_plan(fiscal):
    plan = project(100000, 40000, 20000, fiscal)

    assert plan.cost_coefficient == Decimal("2.5")
    assert plan.gross_profit == Decimal("60000")
    assert plan.net_before_social == Decimal("40000")
    assert plan.social_contributions == Decimal("8200")
    assert plan.net_before_tax == Decimal("31800")
    assert plan.exempt_allowance == Decimal("10570")
    assert plan.taxable_base == Decimal("21230")
    assert plan.base_tax == Decimal("6119")
    assert plan.municipal_tax == Decimal("428.33")
    assert plan.total_tax == Decimal("6547.33")
    assert plan.net_result == Decimal("25252.67")
    assert plan.annual_compensation == plan.net_result
    assert round_cents(plan.monthly_compensation) == Decimal("2104.39")


@pytest.mark.parametrize("revenue", [0, 15000, 42000, 100000, 250000])
def test_net_result_identity(fiscal, revenue):
    plan = project(revenue, Decimal(revenue) / 3, 12000, fiscal)

    assert plan.net_result == plan.net_before_tax - plan.total_tax
    assert plan.total_tax == plan.base_tax + plan.municipal_tax
    assert plan.taxable_base >= 0


def test_loss_pays_no_contribution_nor_tax(fiscal):
    plan = project(10000, 8000, 5000, fiscal)

    assert plan.net_before_social == Decimal("-3000")
    assert plan.social_contributions == 0
    assert plan.taxable_base == 0
    assert plan.total_tax == 0
    assert plan.net_result == Decimal("-3000")
    assert plan.monthly_compensation == Decimal("-250")


def test_zero_goods_gives_zero_coefficient(fiscal):
    plan = project(50000, 0, 10000, fiscal)

    assert plan.cost_coefficient == 0
    assert plan.gross_profit == Decimal("50000")


def test_children_raise_the_allowance(fiscal):
    with_children = replace(fiscal, dependent_children_count=2)

    plan = project(100000, 40000, 20000, with_children)

    assert plan.exempt_allowance == Decimal("14270")
    assert plan.taxable_base == Decimal("17530")
    assert plan.net_result > project(100000, 40000, 20000, fiscal).net_result


def test_empty_plan_is_all_zero(fiscal):
    plan = empty_plan(fiscal)

    for key, value in plan.as_dict().items():
        if key == "exempt_allowance":
            assert value == Decimal("10570")
        else:
            assert value == 0, key


def test_as_dict_follows_statement_order(fiscal):
    plan = project(100000, 40000, 20000, fiscal)

    assert list(plan.as_dict()) == list(INDICATOR_LABELS)


def test_expense_categories_are_carried_through(fiscal):
    plan = project(
        100000,
        40000,
        20000,
        fiscal,
        expenses_by_category={"Loyer": 12000, "Énergie": 8000.5},
    )

    assert plan.expenses_by_category == {
        "Loyer": Decimal("12000"),
        "Énergie": Decimal("8000.5"),
    }
    assert plan.total_expenses == Decimal("20000")


def test_float_inputs(fiscal):
    plan = project(0.1, 0, 0.2, fiscal)

    assert plan.net_before_social == Decimal("-0.1")


@pytest.mark.parametrize(
    "raw, expected",
    [(0.1, Decimal("0.1")), ("21230.5", Decimal("21230.5")), (3, Decimal("3"))],
)
def test_to_decimal(raw, expected):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize(
    "raw", ["nan", "inf", "-Infinity", float("nan"), Decimal("NaN"), "abc", True]
)
def test_to_decimal_rejects_non_finite_values(raw):
    with pytest.raises(ValueError, match="Invalid numeric value"):
        to_decimal(raw)


def test_non_finite_revenue_is_rejected(fiscal):
    with pytest.raises(ValueError):
        project(float("inf"), 0, 0, fiscal)
