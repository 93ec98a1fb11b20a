from dataclasses import replace

from retireplan.data_model import AccountItem, ProjectionDetail
from retireplan.engine.analysis import (
    analyze_rmds,
    analyze_sequence_of_returns_risk,
    analyze_tax_efficiency,
    build_analysis,
    calculate_retirement_score,
    identify_risks,
    risk_level,
)
from retireplan.engine.simulator import project


def test_risk_level_thresholds():
    assert risk_level(49) == "High"
    assert risk_level(50) == "Medium"
    assert risk_level(75) == "Low"


def test_score_for_example_household(household, accounts, expenses, settings):
    records = project(household, accounts, expenses, [], settings)

    score = calculate_retirement_score(records, settings)

    assert 0 <= score.overall <= 100
    assert score.longevity > 50
    assert score.risk_level in {"High", "Medium", "Low"}


def test_empty_projection_scores_zero(settings):
    score = calculate_retirement_score([], settings)

    assert score.overall == 0
    assert score.risk_level == "High"


def test_risks_flag_shortfalls_and_low_roth(household, settings):
    accounts = [AccountItem(name="Brokerage", account_type="Taxable", balance=1000.0)]
    records = [
        ProjectionDetail(year=2024 + i, age=50 + i, gap_excess=-100.0, networth=1000.0 - i * 100, total_income=1.0)
        for i in range(10)
    ]

    risk_types = {risk.type for risk in identify_risks(records, settings, accounts)}

    assert "Cash Flow Shortfall" in risk_types
    assert "Asset Depletion Risk" in risk_types
    assert "Low Roth Allocation" in risk_types


def test_rmd_summary(settings):
    records = [
        ProjectionDetail(year=2047, age=73, rmd_amount=40000.0),
        ProjectionDetail(year=2048, age=74, rmd_amount=150000.0),
    ]

    summary = analyze_rmds(records, settings)

    assert summary["first_rmd_year"] == 2047
    assert summary["peak_rmd_year"] == 2048
    assert summary["total_rmds"] == 190000.0
    assert summary["recommendation"].startswith("High RMDs")


def test_rmd_summary_before_rmd_age(settings):
    summary = analyze_rmds([ProjectionDetail(year=2024, age=50)], settings)

    assert summary["first_rmd_year"] is None
    assert summary["total_rmds"] == 0.0


def test_tax_efficiency_suggests_conversion(household, accounts, expenses, settings):
    records = project(household, accounts, expenses, [], settings)

    result = analyze_tax_efficiency(records, settings, accounts)

    assert result["total_taxes"] > 0
    assert result["roth_conversion"]["optimal_amount"] == 50000.0


def test_sequence_risk_needs_retirement_years(settings):
    result = analyze_sequence_of_returns_risk([ProjectionDetail(year=2024, age=50)], 65)

    assert result["risk_level"] == "Low"
    assert result["description"] == "Retirement not yet reached"


def test_build_analysis_payload(household, accounts, expenses, settings):
    records = project(household, accounts, expenses, [], replace(settings, growth_rate_during_retirement=0.03))

    analysis = build_analysis(records, settings, accounts, expenses)

    assert set(analysis) == {"score", "risks", "recommendations", "rmds", "tax_efficiency", "sequence_risk"}
    assert any(r["title"] == "Consider Roth Conversions" for r in analysis["recommendations"])
