"""Federal income and capital-gains tax using the embedded 2024 tables.

Thresholds are not indexed over simulated years and capital gains are taxed
on their own schedule rather than stacked on top of ordinary income.
"""
from __future__ import annotations

import math
from typing import List, Tuple

from ..data_model.household import FILING_HEAD, FILING_JOINT, FILING_SEPARATE, FILING_SINGLE

RATES: Tuple[float, ...] = (0.10, 0.12, 0.22, 0.24, 0.32, 0.35, 0.37)

_SINGLE_CEILINGS = (11600.0, 47150.0, 100525.0, 191950.0, 243725.0, 609350.0, math.inf)
_JOINT_CEILINGS = (23200.0, 94300.0, 201050.0, 383900.0, 487450.0, 731200.0, math.inf)

ORDINARY_BRACKETS: dict[str, List[Tuple[float, float]]] = {
    FILING_SINGLE: list(zip(_SINGLE_CEILINGS, RATES)),
    FILING_HEAD: list(zip(_SINGLE_CEILINGS, RATES)),
    FILING_JOINT: list(zip(_JOINT_CEILINGS, RATES)),
    FILING_SEPARATE: list(zip((c / 2.0 for c in _JOINT_CEILINGS), RATES)),
}

CAPITAL_GAINS_BRACKETS: dict[str, List[Tuple[float, float]]] = {
    FILING_SINGLE: [(47025.0, 0.0), (518900.0, 0.15), (math.inf, 0.20)],
    FILING_HEAD: [(47025.0, 0.0), (518900.0, 0.15), (math.inf, 0.20)],
    FILING_JOINT: [(94050.0, 0.0), (583750.0, 0.15), (math.inf, 0.20)],
    FILING_SEPARATE: [(47025.0, 0.0), (291875.0, 0.15), (math.inf, 0.20)],
}

STANDARD_DEDUCTION_JOINT = 29200.0
STANDARD_DEDUCTION_OTHER = 14600.0


def _resolve_status(filing_status: str | None) -> str:
    if filing_status in ORDINARY_BRACKETS:
        return filing_status
    return FILING_SINGLE


def determine_filing_status(include_spouse_income: bool, explicit_status: str | None = None) -> str:
    if explicit_status:
        return explicit_status
    return FILING_JOINT if include_spouse_income else FILING_SINGLE


def _apply_brackets(amount: float, brackets: List[Tuple[float, float]]) -> float:
    if amount is None or amount <= 0 or math.isnan(amount):
        return 0.0
    tax = 0.0
    lower = 0.0
    for ceiling, rate in brackets:
        if amount <= lower:
            break
        tax += (min(amount, ceiling) - lower) * rate
        lower = ceiling
    return tax


def calculate_progressive_tax(taxable_income: float, filing_status: str | None) -> float:
    """Ordinary income tax; `taxable_income` is already net of the deduction."""
    return _apply_brackets(taxable_income, ORDINARY_BRACKETS[_resolve_status(filing_status)])


def calculate_capital_gains_tax(long_term_gains: float, filing_status: str | None) -> float:
    return _apply_brackets(long_term_gains, CAPITAL_GAINS_BRACKETS[_resolve_status(filing_status)])


def standard_deduction(filing_status: str | None) -> float:
    return STANDARD_DEDUCTION_JOINT if filing_status == FILING_JOINT else STANDARD_DEDUCTION_OTHER


def marginal_rate(taxable_income: float, filing_status: str | None) -> float:
    brackets = ORDINARY_BRACKETS[_resolve_status(filing_status)]
    if taxable_income is None or taxable_income <= 0:
        return brackets[0][1]
    for ceiling, rate in brackets:
        if taxable_income <= ceiling:
            return rate
    return brackets[-1][1]


def bracket_ceiling(rate: float, filing_status: str | None) -> float:
    """Top of the ordinary bracket taxed at `rate` (e.g. 0.12 -> 47,150 Single)."""
    brackets = ORDINARY_BRACKETS[_resolve_status(filing_status)]
    for ceiling, bracket_rate in brackets:
        if math.isclose(bracket_rate, rate):
            return ceiling
    raise ValueError(f"No {rate:.0%} bracket for {filing_status or FILING_SINGLE}.")


def estimate_tax(
    ordinary_income: float,
    capital_gains: float,
    filing_status: str | None,
) -> dict[str, float]:
    """Convenience breakdown for a single year of gross ordinary income and gains."""
    status = _resolve_status(filing_status)
    deduction = standard_deduction(status)
    taxable = max(0.0, ordinary_income - deduction)
    ordinary_tax = calculate_progressive_tax(taxable, status)
    gains_tax = calculate_capital_gains_tax(max(0.0, capital_gains), status)
    total = ordinary_tax + gains_tax
    gross = max(0.0, ordinary_income) + max(0.0, capital_gains)
    return {
        "filing_status": status,
        "standard_deduction": deduction,
        "taxable_income": taxable,
        "ordinary_tax": ordinary_tax,
        "capital_gains_tax": gains_tax,
        "total_tax": total,
        "marginal_rate": marginal_rate(taxable, status),
        "effective_rate": total / gross if gross > 0 else 0.0,
    }
