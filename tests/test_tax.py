import pytest

from retireplan.engine.tax import (
    bracket_ceiling,
    calculate_capital_gains_tax,
    calculate_progressive_tax,
    determine_filing_status,
    estimate_tax,
    marginal_rate,
    standard_deduction,
)

MFJ = "Married Filing Jointly"
MFS = "Married Filing Separately"


def test_joint_filer_tax_on_80k():
    tax = calculate_progressive_tax(80000, MFJ)

    # 23,200 at 10% + 56,800 at 12%
    assert tax == pytest.approx(9136.0)


def test_zero_and_negative_income_owe_nothing():
    assert calculate_progressive_tax(0, "Single") == 0.0
    assert calculate_progressive_tax(-500, "Single") == 0.0
    assert calculate_capital_gains_tax(0, MFJ) == 0.0


def test_tax_is_monotonic_in_income():
    previous = 0.0
    for income in range(0, 1_000_001, 25_000):
        tax = calculate_progressive_tax(income, "Single")
        assert tax >= previous
        previous = tax


def test_tax_is_continuous_at_bracket_boundary():
    below = calculate_progressive_tax(47150 - 0.01, "Single")
    above = calculate_progressive_tax(47150 + 0.01, "Single")

    assert above - below == pytest.approx(0.01 * 0.12 + 0.01 * 0.22, abs=1e-6)


def test_separate_filers_use_half_joint_thresholds():
    assert bracket_ceiling(0.12, MFS) == pytest.approx(bracket_ceiling(0.12, MFJ) / 2)
    assert calculate_progressive_tax(40000, MFS) == pytest.approx(calculate_progressive_tax(80000, MFJ) / 2)


def test_unknown_status_falls_back_to_single():
    assert calculate_progressive_tax(60000, "Widowed") == calculate_progressive_tax(60000, "Single")


def test_capital_gains_brackets():
    assert calculate_capital_gains_tax(40000, "Single") == 0.0
    assert calculate_capital_gains_tax(57025, "Single") == pytest.approx(1500.0)
    assert calculate_capital_gains_tax(94050, MFJ) == 0.0


def test_standard_deduction_and_filing_status():
    assert standard_deduction(MFJ) == 29200.0
    assert standard_deduction("Single") == 14600.0
    assert standard_deduction(MFS) == 14600.0
    assert determine_filing_status(True) == MFJ
    assert determine_filing_status(False) == "Single"
    assert determine_filing_status(True, "Head of Household") == "Head of Household"


def test_bracket_ceiling_and_marginal_rate():
    assert bracket_ceiling(0.12, "Single") == 47150.0
    assert marginal_rate(50000, "Single") == 0.22
    with pytest.raises(ValueError):
        bracket_ceiling(0.50, "Single")


def test_estimate_tax_breakdown():
    result = estimate_tax(109200, 10000, MFJ)

    assert result["taxable_income"] == pytest.approx(80000)
    assert result["ordinary_tax"] == pytest.approx(9136.0)
    assert result["capital_gains_tax"] == 0.0
    assert result["total_tax"] == pytest.approx(9136.0)
    assert result["marginal_rate"] == 0.12
    assert 0 < result["effective_rate"] < 0.12
