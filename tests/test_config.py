from decimal import Decimal
from pathlib import Path

import pytest

from pilotfood.brackets import DEFAULT_TAX_BRACKETS, BracketConfigurationError
from pilotfood.config import default_app_config, load_app_config, parse_app_config


def _write(tmp_path: Path, content: str) -> str:
    path = tmp_path / "pilotfood_config.toml"
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_defaults_without_file():
    config = default_app_config()

    assert config.fiscal.social_contribution_rate == Decimal("20.5")
    assert config.fiscal.municipal_surcharge_rate == Decimal("7")
    assert config.fiscal.exempt_allowance == Decimal("10570")
    assert config.fiscal.brackets == DEFAULT_TAX_BRACKETS
    assert config.margins.btb_margin == Decimal("30")
    assert config.margins.distributor_margin == Decimal("15")
    assert config.simulation.fallback_coefficient == Decimal("2.5")
    assert config.simulation.solver.max_iterations == 100
    assert config.display_mode == "table"
    assert config.decimals == 2


def test_example_config_file_loads():
    example = Path(__file__).resolve().parents[1] / "pilotfood_config.example.toml"

    config = load_app_config(str(example))

    assert config.fiscal.brackets == DEFAULT_TAX_BRACKETS
    assert config.simulation.viability_threshold == Decimal("60000")
    assert config.simulation.ideal_revenue == Decimal("120000")


def test_custom_values(tmp_path):
    path = _write(
        tmp_path,
        """
[fiscal]
social_contribution_rate = 21
dependent_children_count = 2

[pricing]
btb_margin = 25

[display]
mode = "both"
decimals = 0
""",
    )

    config = load_app_config(path)

    assert config.fiscal.social_contribution_rate == Decimal("21")
    assert config.fiscal.exempt_allowance == Decimal("14270")
    assert config.margins.btb_margin == Decimal("25")
    assert config.margins.distributor_margin == Decimal("15")
    assert config.display_mode == "both"
    assert config.decimals == 0


def test_custom_brackets_are_sorted(tmp_path):
    path = _write(
        tmp_path,
        """
[[tax_brackets]]
lower_bound = 10000
rate = 30
order = 2

[[tax_brackets]]
lower_bound = 0
upper_bound = 10000
rate = 10
order = 1
""",
    )

    brackets = load_app_config(path).fiscal.brackets

    assert [b.order for b in brackets] == [1, 2]
    assert brackets[1].upper_bound is None


def test_inconsistent_brackets_fail_at_load_time(tmp_path):
    path = _write(
        tmp_path,
        """
[[tax_brackets]]
lower_bound = 0
upper_bound = 10000
rate = 10
order = 1

[[tax_brackets]]
lower_bound = 12000
rate = 30
order = 2
""",
    )

    with pytest.raises(BracketConfigurationError, match="gap"):
        load_app_config(path)


def test_bracket_without_rate(tmp_path):
    path = _write(
        tmp_path,
        """
[[tax_brackets]]
lower_bound = 0
""",
    )

    with pytest.raises(ValueError, match="missing 'rate'"):
        load_app_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


def test_invalid_toml(tmp_path):
    path = _write(tmp_path, "[fiscal\nsocial_contribution_rate = ")

    with pytest.raises(ValueError, match="Failed to parse"):
        load_app_config(path)


@pytest.mark.parametrize(
    "raw, message",
    [
        ({"display": {"mode": "html"}}, "display.mode"),
        ({"fiscal": {"social_contribution_rate": -1}}, "cannot be negative"),
        ({"fiscal": {"dependent_children_count": "two"}}, "dependent_children"),
        ({"pricing": {"btb_margin": "thirty"}}, "pricing.btb_margin"),
        ({"simulation": {"max_iterations": 0}}, "at least 1"),
        ({"simulation": {"tolerance": 0}}, "must be positive"),
        ({"display": {"decimals": "two"}}, "display.decimals"),
        ({"display": {"decimals": -1}}, "between 0 and 10"),
        ({"display": {"decimals": 2.5}}, "display.decimals"),
        ({"display": {"decimals": True}}, "display.decimals"),
        ({"fiscal": {"social_contribution_rate": float("nan")}}, "fiscal.social"),
        ({"fiscal": {"municipal_surcharge_rate": float("inf")}}, "fiscal.municipal"),
        ({"vat": {"sales_rate": -6}}, "cannot be negative"),
        ({"vat": {"purchase_rate": "twenty"}}, "vat.purchase_rate"),
    ],
)
def test_invalid_values(raw, message):
    with pytest.raises(ValueError, match=message):
        parse_app_config(raw)


@pytest.mark.parametrize("rate", ["nan", "inf"])
def test_non_finite_bracket_rate_fails_at_load_time(tmp_path, rate):
    path = _write(
        tmp_path,
        f"""
[[tax_brackets]]
lower_bound = 0
rate = {rate}
""",
    )

    with pytest.raises(ValueError, match="tax bracket #1"):
        load_app_config(path)


def test_non_finite_fiscal_rate_in_file(tmp_path):
    path = _write(tmp_path, "[fiscal]\nsocial_contribution_rate = nan\n")

    with pytest.raises(ValueError, match="fiscal.social_contribution_rate"):
        load_app_config(path)


def test_vat_rates(tmp_path):
    path = _write(tmp_path, "[vat]\nsales_rate = 6\npurchase_rate = 21\n")

    config = load_app_config(path)

    assert config.vat.sales_rate == Decimal("6")
    assert config.vat.purchase_rate == Decimal("21")
    assert default_app_config().vat.purchase_rate == Decimal("20")
