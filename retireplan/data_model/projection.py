from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

DISTRIBUTION_FIELDS: tuple[str, ...] = (
    "distribution_401k",
    "distribution_roth",
    "distribution_taxable",
    "distribution_hsa",
    "distribution_ira",
    "distribution_other",
)

BALANCE_FIELDS: tuple[str, ...] = (
    "balance_401k",
    "balance_roth",
    "balance_investment",
    "balance_other_investments",
    "balance_hsa",
    "balance_ira",
)


@dataclass(frozen=True)
class ProjectionDetail:
    """One simulated household-year. Never mutated after creation."""

    year: int
    age: int
    event: str | None = None
    spouse_age: int | None = None
    ssa_income: float = 0.0
    distribution_401k: float = 0.0
    distribution_roth: float = 0.0
    distribution_taxable: float = 0.0
    distribution_hsa: float = 0.0
    distribution_ira: float = 0.0
    distribution_other: float = 0.0
    investment_income: float = 0.0
    other_recurring_income: float = 0.0
    total_income: float = 0.0
    after_tax_income: float = 0.0
    living_expenses: float = 0.0
    special_expenses: float = 0.0
    total_expenses: float = 0.0
    gap_excess: float = 0.0
    cumulative_liability: float = 0.0
    debt_balance: float = 0.0
    debt_interest_paid: float = 0.0
    debt_principal_paid: float = 0.0
    assets_remaining: float = 0.0
    networth: float = 0.0
    balance_401k: float = 0.0
    balance_roth: float = 0.0
    balance_investment: float = 0.0
    balance_other_investments: float = 0.0
    balance_hsa: float = 0.0
    balance_ira: float = 0.0
    taxable_income: float = 0.0
    tax: float = 0.0
    rmd_amount: float = 0.0
    roth_conversion: float = 0.0
    qcd_amount: float = 0.0
    surplus_reinvested: float = 0.0
    contribution: float = 0.0

    @property
    def total_distributions(self) -> float:
        return sum(getattr(self, name) for name in DISTRIBUTION_FIELDS)

    @property
    def total_balance(self) -> float:
        return sum(getattr(self, name) for name in BALANCE_FIELDS)

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


PROJECTION_COLUMNS: tuple[str, ...] = tuple(ProjectionDetail.__dataclass_fields__)
