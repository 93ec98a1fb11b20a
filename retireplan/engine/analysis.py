"""Scoring and risk summaries computed from a finished projection."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Sequence

from ..data_model import ACCOUNT_ROTH, TRADITIONAL_TYPES, AccountItem, CalculatorSettings, ExpenseItem, ProjectionDetail
from .simulator import safe_divide

SCORE_WEIGHTS = {
    "longevity": 0.60,
    "tax_efficiency": 0.15,
    "cashflow": 0.05,
    "inflation": 0.10,
    "medical": 0.10,
}


@dataclass
class RetirementScore:
    overall: int
    cashflow: int
    tax_efficiency: int
    longevity: int
    inflation: int
    medical: int
    risk_level: str

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Risk:
    type: str
    severity: str
    description: str
    recommendation: str


@dataclass
class Recommendation:
    category: str
    priority: str
    title: str
    description: str
    impact: str


def risk_level(score: float) -> str:
    if score < 50:
        return "High"
    if score < 75:
        return "Medium"
    return "Low"


def _mean(values: Sequence[float]) -> float:
    return safe_divide(sum(values), len(values))


def _retirement_years(projections: Sequence[ProjectionDetail], retirement_age: int) -> List[ProjectionDetail]:
    return [p for p in projections if p.age >= retirement_age]


def _thirds(rows: Sequence[ProjectionDetail]) -> tuple[Sequence[ProjectionDetail], Sequence[ProjectionDetail]]:
    third = len(rows) // 3
    late = rows[-third:] if third else rows
    return rows[:third], late


def _growth_rates(projections: Sequence[ProjectionDetail], retirement_age: int) -> tuple[float, float] | None:
    """(expense growth, income growth) between the first and last third of retirement."""
    retired = _retirement_years(projections, retirement_age)
    if not retired:
        return None
    early, late = _thirds(retired)
    early_expenses = _mean([p.total_expenses for p in early])
    late_expenses = _mean([p.total_expenses for p in late])
    early_income = _mean([p.total_income for p in early])
    late_income = _mean([p.total_income for p in late])
    expense_growth = safe_divide(late_expenses - early_expenses, early_expenses)
    income_growth = safe_divide(late_income - early_income, early_income)
    return expense_growth, income_growth


def _late_expense_ratio(projections: Sequence[ProjectionDetail]) -> float:
    """How much higher late-life expenses run than the average year."""
    avg_expenses = _mean([p.total_expenses for p in projections])
    third = max(1, len(projections) // 3)
    late_expenses = sum(p.total_expenses for p in projections[-third:]) / third
    return safe_divide(late_expenses - avg_expenses, avg_expenses)


def calculate_retirement_score(
    projections: Sequence[ProjectionDetail],
    settings: CalculatorSettings,
) -> RetirementScore:
    if not projections:
        return RetirementScore(0, 0, 0, 0, 0, 0, "High")

    negative_years = sum(1 for p in projections if p.gap_excess < 0)
    cashflow = max(0.0, 100.0 - negative_years / len(projections) * 100.0)

    total_taxes = sum(p.tax for p in projections)
    total_income = sum(p.total_income for p in projections)
    tax_efficiency = max(0.0, 100.0 - total_taxes / total_income * 200.0) if total_income > 0 else 50.0

    initial = projections[0].networth
    final = projections[-1].networth
    longevity = min(100.0, final / initial * 50.0 + 50.0) if initial > 0 else 0.0
    longevity = max(0.0, longevity)

    rates = _growth_rates(projections, settings.retirement_age)
    if rates is None:
        inflation = max(0.0, 100.0 - settings.inflation_rate * 1000.0)
    else:
        expense_growth, income_growth = rates
        if expense_growth > 0:
            inflation = max(0.0, 100.0 - (expense_growth - income_growth) / expense_growth * 100.0)
        else:
            inflation = 100.0
        inflation = min(100.0, inflation)

    medical = min(100.0, max(0.0, 100.0 - _late_expense_ratio(projections) * 200.0))

    overall = round(
        longevity * SCORE_WEIGHTS["longevity"]
        + tax_efficiency * SCORE_WEIGHTS["tax_efficiency"]
        + cashflow * SCORE_WEIGHTS["cashflow"]
        + inflation * SCORE_WEIGHTS["inflation"]
        + medical * SCORE_WEIGHTS["medical"]
    )
    return RetirementScore(
        overall=overall,
        cashflow=round(cashflow),
        tax_efficiency=round(tax_efficiency),
        longevity=round(longevity),
        inflation=round(inflation),
        medical=round(medical),
        risk_level=risk_level(overall),
    )


def identify_risks(
    projections: Sequence[ProjectionDetail],
    settings: CalculatorSettings,
    accounts: Sequence[AccountItem],
) -> List[Risk]:
    risks: List[Risk] = []
    if not projections:
        return risks

    negative_years = sum(1 for p in projections if p.gap_excess < 0)
    if negative_years:
        risks.append(
            Risk(
                "Cash Flow Shortfall",
                "High" if negative_years > len(projections) * 0.2 else "Medium",
                f"{negative_years} years with negative cash flow (expenses exceed income).",
                "Consider reducing expenses, increasing income sources, or adjusting retirement age.",
            )
        )

    initial = projections[0].networth
    final = projections[-1].networth
    if final < initial * 0.3:
        reduction = (1 - safe_divide(final, initial)) * 100 if initial else 100.0
        risks.append(
            Risk(
                "Asset Depletion Risk",
                "High",
                f"Net worth may decline significantly by end of retirement ({reduction:.0f}% reduction).",
                "Consider reducing withdrawal rates, increasing growth assumptions, or working longer.",
            )
        )

    rmd_years = [p for p in projections if p.age >= settings.rmd_age]
    if rmd_years:
        max_rmd = max(p.rmd_amount for p in rmd_years)
        avg_income = _mean([p.total_income for p in projections])
        if max_rmd > avg_income * 0.5:
            risks.append(
                Risk(
                    "High RMD Risk",
                    "Medium",
                    f"RMDs may push you into higher tax brackets after age {settings.rmd_age}.",
                    f"Consider Roth conversions before age {settings.rmd_age} to reduce future RMDs and tax burden.",
                )
            )

    total_balance = sum(a.balance for a in accounts)
    roth_balance = sum(a.balance for a in accounts if a.normalized_type() == ACCOUNT_ROTH)
    if total_balance > 0 and roth_balance / total_balance < 0.2:
        risks.append(
            Risk(
                "Low Roth Allocation",
                "Low",
                f"Only {roth_balance / total_balance * 100:.0f}% of assets are in Roth accounts.",
                "Consider Roth conversions or increasing Roth contributions to improve tax flexibility in retirement.",
            )
        )

    rates = _growth_rates(projections, settings.retirement_age)
    if rates is not None:
        expense_growth, income_growth = rates
        if expense_growth > 0.05 and expense_growth > income_growth * 1.5:
            inflation_risk = (expense_growth - income_growth) / expense_growth * 100
            severity = "High" if inflation_risk > 30 else "Medium" if inflation_risk > 15 else "Low"
            risks.append(
                Risk(
                    "Inflation Risk",
                    severity,
                    f"Expenses are growing {(expense_growth - income_growth) * 100:.1f}% faster than income, "
                    "indicating inflation may erode purchasing power.",
                    "Consider increasing growth assumptions, reducing expenses, or adding inflation-protected income sources.",
                )
            )

    ratio = _late_expense_ratio(projections)
    if ratio > 0.2:
        risks.append(
            Risk(
                "Health Care Expenses Risk",
                "High" if ratio > 0.5 else "Medium" if ratio > 0.3 else "Low",
                f"Late-year expenses are {ratio * 100:.0f}% higher than average, indicating potential health care cost increases.",
                "Consider setting aside funds for health care, reviewing Medicare coverage options, or purchasing long-term care insurance.",
            )
        )
    return risks


def _traditional_balance(accounts: Sequence[AccountItem]) -> float:
    return sum(a.balance for a in accounts if a.normalized_type() in TRADITIONAL_TYPES)


def generate_recommendations(
    projections: Sequence[ProjectionDetail],
    settings: CalculatorSettings,
    accounts: Sequence[AccountItem],
    expenses: Sequence[ExpenseItem],
) -> List[Recommendation]:
    recommendations: List[Recommendation] = []
    if not projections:
        return recommendations

    traditional = _traditional_balance(accounts)
    if traditional > 100000:
        recommendations.append(
            Recommendation(
                "Tax Strategy",
                "High",
                "Consider Roth Conversions",
                f"You have ${traditional:,.0f} in traditional retirement accounts. Converting some to Roth now "
                "could reduce future RMDs and taxes.",
                "Could save significant taxes in later years and provide more tax-free income flexibility.",
            )
        )

    annual_expenses = sum(e.monthly_amount(settings.retirement_age) for e in expenses) * 12
    avg_income = _mean([p.total_income for p in projections])
    if annual_expenses > avg_income * 1.1:
        recommendations.append(
            Recommendation(
                "Expense Management",
                "Medium",
                "Review Expenses",
                f"Annual expenses (${annual_expenses:,.0f}) may exceed average income.",
                "Reducing expenses by 10-15% could significantly improve retirement sustainability.",
            )
        )

    if settings.growth_rate_during_retirement < 0.04:
        recommendations.append(
            Recommendation(
                "Investment Strategy",
                "Medium",
                "Review Growth Assumptions",
                f"Current growth rate assumption ({settings.growth_rate_during_retirement * 100:.1f}%) may be conservative.",
                "Consider if a slightly higher growth rate is appropriate for your risk tolerance and time horizon.",
            )
        )
    return recommendations


def analyze_rmds(projections: Sequence[ProjectionDetail], settings: CalculatorSettings) -> Dict[str, Any]:
    rmd_years = [p for p in projections if p.age >= settings.rmd_age]
    if not rmd_years:
        return {
            "first_rmd_year": None,
            "first_rmd_amount": 0.0,
            "peak_rmd_year": None,
            "peak_rmd_amount": 0.0,
            "total_rmds": 0.0,
            "recommendation": f"RMDs will begin at age {settings.rmd_age}. Consider Roth conversions before then to reduce future RMDs.",
        }
    first = rmd_years[0]
    peak = max(rmd_years, key=lambda p: p.rmd_amount)
    if peak.rmd_amount > 100000:
        recommendation = f"High RMDs detected. Consider Roth conversions before age {settings.rmd_age} to reduce future tax burden."
    else:
        recommendation = "RMDs are manageable. Continue monitoring as account balances grow."
    return {
        "first_rmd_year": first.year,
        "first_rmd_amount": first.rmd_amount,
        "peak_rmd_year": peak.year,
        "peak_rmd_amount": peak.rmd_amount,
        "total_rmds": sum(p.rmd_amount for p in rmd_years),
        "recommendation": recommendation,
    }


def analyze_tax_efficiency(
    projections: Sequence[ProjectionDetail],
    settings: CalculatorSettings,
    accounts: Sequence[AccountItem],
) -> Dict[str, Any]:
    if not projections:
        return {"total_taxes": 0.0, "avg_annual_tax": 0.0, "efficiency_score": 0, "roth_conversion": None}

    total_taxes = sum(p.tax for p in projections)
    total_income = sum(p.total_income for p in projections)
    tax_rate = safe_divide(total_taxes, total_income) * 100
    result: Dict[str, Any] = {
        "total_taxes": total_taxes,
        "avg_annual_tax": total_taxes / len(projections),
        "effective_rate": tax_rate,
        "efficiency_score": round(max(0.0, 100 - tax_rate * 2)),
        "roth_conversion": None,
    }

    traditional = _traditional_balance(accounts)
    if traditional > 50000:
        amount = min(50000.0, traditional * 0.1)
        tax_cost = amount * settings.income_tax_rate_retirement
        # assumes ~20% tax savings per year over 20 years
        future_savings = amount * 0.2 * 20
        result["roth_conversion"] = {
            "optimal_amount": amount,
            "tax_cost": tax_cost,
            "future_savings": future_savings,
            "recommendation": (
                f"Consider converting ${amount:,.0f} per year to Roth accounts. This will cost ${tax_cost:,.0f} "
                f"in taxes now but could save ${future_savings:,.0f} in future taxes."
            ),
        }
    return result


def analyze_sequence_of_returns_risk(projections: Sequence[ProjectionDetail], retirement_age: int) -> Dict[str, Any]:
    """Implied returns over the first decade of retirement, net of withdrawals."""
    empty = {"worst_case_sequence": 0.0, "best_case_sequence": 0.0, "average_sequence": 0.0, "risk_level": "Low"}
    if not projections:
        return {**empty, "description": "No projections available"}
    start = next((i for i, p in enumerate(projections) if p.age >= retirement_age), None)
    if start is None:
        return {**empty, "description": "Retirement not yet reached"}

    window = list(projections[start:start + 10])
    returns: List[float] = []
    for previous, current in zip(window, window[1:]):
        if previous.networth > 0:
            change = (current.networth - previous.networth + current.total_distributions) / previous.networth
            if change != 0:
                returns.append(change)
    if not returns:
        return {**empty, "description": "Not enough retirement years to measure returns"}

    worst = min(returns)
    if worst < -0.2:
        level = "High"
        description = (
            "High sequence of returns risk: Poor market performance in early retirement years "
            "could significantly impact plan sustainability."
        )
    elif worst < -0.1:
        level = "Medium"
        description = "Moderate sequence of returns risk: Market downturns in early retirement could affect plan sustainability."
    else:
        level = "Low"
        description = "Low sequence of returns risk: Plan appears resilient to market volatility in early retirement."
    return {
        "worst_case_sequence": worst * 100,
        "best_case_sequence": max(returns) * 100,
        "average_sequence": sum(returns) / len(returns) * 100,
        "risk_level": level,
        "description": description,
    }


def build_analysis(
    projections: Sequence[ProjectionDetail],
    settings: CalculatorSettings,
    accounts: Sequence[AccountItem],
    expenses: Sequence[ExpenseItem],
) -> Dict[str, Any]:
    return {
        "score": calculate_retirement_score(projections, settings).to_payload(),
        "risks": [asdict(r) for r in identify_risks(projections, settings, accounts)],
        "recommendations": [asdict(r) for r in generate_recommendations(projections, settings, accounts, expenses)],
        "rmds": analyze_rmds(projections, settings),
        "tax_efficiency": analyze_tax_efficiency(projections, settings, accounts),
        "sequence_risk": analyze_sequence_of_returns_risk(projections, settings.retirement_age),
    }
