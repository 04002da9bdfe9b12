from decimal import Decimal

import pytest

from pilotfood.brackets import (
    DEFAULT_TAX_BRACKETS,
    BracketConfigurationError,
    TaxBracket,
    bracket_label,
    compute_tax,
    compute_tax_details,
    validate_brackets,
)


@pytest.mark.parametrize("base", [0, -1, -25000, Decimal("-0.01")])
def test_no_tax_on_zero_or_negative_base(base):
    assert compute_tax(base, DEFAULT_TAX_BRACKETS) == 0


def test_no_tax_without_brackets():
    assert compute_tax(50000, []) == 0


@pytest.mark.parametrize(
    "base, expected",
    [
        (10000, Decimal("2500")),
        (15820, Decimal("3955")),
        (20000, Decimal("5627")),  # 15820 * 25 % + 4180 * 40 %
        (21230, Decimal("6119")),
        (27920, Decimal("8795")),  # 3955 + 12100 * 40 %
        (60000, Decimal("23815")),  # 8795 + 20400 * 45 % + 11680 * 50 %
    ],
)
def test_marginal_rates(base, expected):
    assert compute_tax(base, DEFAULT_TAX_BRACKETS) == expected


def test_tax_is_non_decreasing():
    previous = Decimal("0")
    for base in range(0, 100001, 250):
        tax = compute_tax(base, DEFAULT_TAX_BRACKETS)
        assert tax >= previous
        previous = tax


def test_brackets_are_walked_by_lower_bound():
    """The result must not depend on the order in which brackets are given."""
    shuffled = [
        DEFAULT_TAX_BRACKETS[2],
        DEFAULT_TAX_BRACKETS[0],
        DEFAULT_TAX_BRACKETS[3],
        DEFAULT_TAX_BRACKETS[1],
    ]
    assert compute_tax(20000, shuffled) == Decimal("5627")


def test_details_sum_to_total():
    lines = compute_tax_details(50000, DEFAULT_TAX_BRACKETS)

    assert [line.bracket.order for line in lines] == [1, 2, 3, 4]
    assert lines[-1].taxable_amount == Decimal("1680")
    assert sum(line.tax for line in lines) == compute_tax(50000, DEFAULT_TAX_BRACKETS)


def test_details_stop_at_base():
    lines = compute_tax_details(20000, DEFAULT_TAX_BRACKETS)

    assert len(lines) == 2
    assert lines[0].taxable_amount == Decimal("15820")
    assert lines[1].taxable_amount == Decimal("4180")
    assert lines[1].tax == Decimal("1672")


def test_float_inputs_are_converted_exactly():
    brackets = [TaxBracket.create(0, None, 10, 1)]
    assert compute_tax(0.1, brackets) == Decimal("0.01")


def test_validate_accepts_default_scale():
    ordered = validate_brackets(list(reversed(DEFAULT_TAX_BRACKETS)))
    assert ordered == list(DEFAULT_TAX_BRACKETS)


def test_validate_accepts_empty_scale():
    assert validate_brackets([]) == []


@pytest.mark.parametrize(
    "brackets, message",
    [
        (
            [TaxBracket.create(0, 1000, 10, 1), TaxBracket.create(1200, None, 20, 2)],
            "gap",
        ),
        (
            [TaxBracket.create(0, 1000, 10, 1), TaxBracket.create(800, None, 20, 2)],
            "overlap",
        ),
        (
            [TaxBracket.create(0, 1000, 10, 2), TaxBracket.create(1000, None, 20, 1)],
            "order",
        ),
        (
            [TaxBracket.create(0, 1000, 10, 1), TaxBracket.create(1000, None, 20, 1)],
            "Duplicate",
        ),
        (
            [TaxBracket.create(100, 1000, 10, 1), TaxBracket.create(1000, None, 20, 2)],
            "start at 0",
        ),
        (
            [TaxBracket.create(0, 1000, 10, 1), TaxBracket.create(1000, 2000, 20, 2)],
            "last tax bracket must be unbounded",
        ),
        (
            [TaxBracket.create(0, None, 10, 1), TaxBracket.create(1000, None, 20, 2)],
            "Only the last",
        ),
        ([TaxBracket.create(0, None, -5, 1)], "Negative rate"),
        (
            [TaxBracket.create(0, 0, 10, 1), TaxBracket.create(0, None, 20, 2)],
            "ends before it starts",
        ),
    ],
)
def test_validate_rejects_inconsistent_scales(brackets, message):
    with pytest.raises(BracketConfigurationError, match=message):
        validate_brackets(brackets)


def test_configuration_error_is_a_value_error():
    assert issubclass(BracketConfigurationError, ValueError)


def test_bracket_labels():
    assert bracket_label(DEFAULT_TAX_BRACKETS[1]) == "15 820 - 27 920 €"
    assert bracket_label(DEFAULT_TAX_BRACKETS[3]) == "> 48 320 €"
