# data_model/plan.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping

from .accounts import AccountItem, rows_to_accounts
from .base import coerce_int
from .cashflow import ExpenseItem, OtherIncomeItem, rows_to_expenses, rows_to_other_incomes
from .household import Household, household_from_payload


@dataclass
class PlanConfig:
    """Household-level data shared by every scenario of a plan."""

    name: str
    household: Household
    retirement_age: int
    accounts: List[AccountItem] = field(default_factory=list)
    expenses: List[ExpenseItem] = field(default_factory=list)
    other_incomes: List[OtherIncomeItem] = field(default_factory=list)
    annual_retirement_expenses: float = 0.0

    def years_to_retirement(self, current_year: int) -> int:
        current_age = current_year - self.household.birth_year
        return max(0, self.retirement_age - current_age)


def plan_from_payload(payload: Mapping[str, Any], default_life_expectancy: int = 90) -> PlanConfig:
    name = str(payload.get("name", "")).strip()
    if not name:
        raise ValueError("Plan name is required.")
    retirement_age = coerce_int(payload.get("retirement_age", payload.get("retirementAge")))
    if retirement_age is None:
        raise ValueError("Retirement age is required.")
    expenses = rows_to_expenses(payload.get("expenses") or [])
    return PlanConfig(
        name=name,
        household=household_from_payload(payload, default_life_expectancy),
        retirement_age=retirement_age,
        accounts=rows_to_accounts(payload.get("accounts") or []),
        expenses=expenses,
        other_incomes=rows_to_other_incomes(payload.get("other_income") or payload.get("otherIncome") or []),
        annual_retirement_expenses=sum(item.amount_after_65 for item in expenses) * 12.0,
    )
