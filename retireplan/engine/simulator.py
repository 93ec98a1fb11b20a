"""Year-by-year retirement projection."""
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence

from ..data_model import (
    ACCOUNT_401K,
    ACCOUNT_HSA,
    ACCOUNT_IRA,
    ACCOUNT_OTHER,
    ACCOUNT_ROTH,
    ACCOUNT_TAXABLE,
    ACCOUNT_TYPES,
    TRADITIONAL_TYPES,
    AccountItem,
    CalculatorSettings,
    ExpenseItem,
    Household,
    OtherIncomeItem,
    PlanConfig,
    ProjectionDetail,
)
from ..expenses.classifier import split_expenses
from .social_security import annual_benefit
from .tax import (
    calculate_capital_gains_tax,
    calculate_progressive_tax,
    determine_filing_status,
    standard_deduction,
)
from .withdrawal import (
    Balances,
    WithdrawalContext,
    WithdrawalPlan,
    WithdrawalStrategy,
    create_strategy,
    draw_proportionally,
    empty_balances,
)

logger = logging.getLogger(__name__)

MEDICARE_AGE = 65
FULL_SSA_AGE = 67
MAX_SSA_AGE = 70
RMD_BASE_FACTOR = 27.4


class ProjectionInputError(ValueError):
    """Raised when the inputs of a projection run are malformed."""


def safe_divide(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def validate_inputs(
    household: Household,
    accounts: Sequence[AccountItem],
    settings: CalculatorSettings,
) -> None:
    errors: List[str] = []
    if household is None or household.birth_year is None:
        errors.append("Birth year is required.")
    if settings.current_year is None:
        errors.append("Current year is required.")
    if settings.retirement_age is None or settings.retirement_age < 0:
        errors.append("Retirement age must be zero or greater.")
    if not errors and household.end_year() < settings.current_year:
        errors.append("Life expectancy is before the current age.")
    for account in accounts or []:
        if account.balance < 0:
            errors.append(f"Account '{account.name}' has a negative balance.")
        if account.annual_contribution < 0:
            errors.append(f"Account '{account.name}' has a negative contribution.")
    if errors:
        raise ProjectionInputError(" ".join(errors))


def _by_type(accounts: Iterable[AccountItem], attr: str) -> Balances:
    totals = empty_balances()
    for account in accounts or []:
        totals[account.normalized_type()] += float(getattr(account, attr) or 0.0)
    return totals


def required_minimum_distribution(traditional_balance: float, age: int, rmd_age: int) -> float:
    if age < rmd_age or traditional_balance <= 0:
        return 0.0
    factor = max(1.0, RMD_BASE_FACTOR - (age - rmd_age))
    return traditional_balance / factor


def _enforce_rmd(plan: WithdrawalPlan, opening: Balances, required: float) -> float:
    """Tops traditional distributions up to the RMD; returns the RMD actually taken."""
    if required <= 0:
        return 0.0
    missing = required - plan.traditional_total()
    if missing > 0:
        draw_proportionally(missing, opening, plan, TRADITIONAL_TYPES)
    return min(required, plan.traditional_total())


def life_events(
    age: int,
    spouse_age: int | None,
    household: Household,
    settings: CalculatorSettings,
) -> str | None:
    labels: List[str] = []
    if age == settings.retirement_age:
        labels.append("Retirement")
    if age == settings.ssa_start_age:
        labels.append("SSA Eligibility")
    if age == MEDICARE_AGE:
        labels.append("Medicare Eligibility")
    if age == FULL_SSA_AGE:
        labels.append("Full SSA")
    if age == MAX_SSA_AGE:
        labels.append("Max SSA")
    if age == settings.rmd_age:
        labels.append("RMD Starts")
    if settings.include_spouse_ssa and spouse_age is not None and spouse_age == settings.ssa_start_age:
        labels.append("Spouse SSA Eligibility")
    return ", ".join(labels) or None


def _ssa_income(household: Household, settings: CalculatorSettings, year: int, inflation_factor: float) -> float:
    total = 0.0
    if settings.include_planner_ssa:
        total += annual_benefit(
            settings.planner_ssa_base,
            household.birth_year,
            settings.ssa_start_age,
            year - household.birth_year,
            household.life_expectancy,
            inflation_factor,
        )
    if settings.include_spouse_ssa and household.has_spouse:
        total += annual_benefit(
            settings.spouse_ssa_base,
            household.spouse_birth_year,
            settings.ssa_start_age,
            household.spouse_age(year),
            household.spouse_life_expectancy,
            inflation_factor,
        )
    return total


def _other_income(items: Iterable[OtherIncomeItem], year: int, inflation_factor: float) -> float:
    total = 0.0
    for item in items or []:
        if not item.is_active(year):
            continue
        amount = item.annual_amount
        if item.inflation_adjusted:
            amount *= inflation_factor
        total += amount
    return total


def _expenses(
    expenses: Sequence[ExpenseItem],
    settings: CalculatorSettings,
    age: int,
    year: int,
    retired: bool,
    inflation_factor: float,
) -> tuple[float, float, float]:
    """Annual (total, essential, discretionary) living expenses for the year."""
    if expenses:
        essential, discretionary = split_expenses(expenses, age)
        return (
            (essential + discretionary) * 12.0 * inflation_factor,
            essential * 12.0 * inflation_factor,
            discretionary * 12.0 * inflation_factor,
        )
    if not retired:
        return 0.0, 0.0, 0.0
    years = max(0, year - settings.retirement_start_year)
    baseline = settings.annual_retirement_expenses * (1.0 + settings.inflation_rate) ** years
    # no itemized list: the whole baseline is treated as essential
    return baseline, baseline, 0.0


def project(
    household: Household,
    accounts: Sequence[AccountItem],
    expenses: Sequence[ExpenseItem],
    other_incomes: Sequence[OtherIncomeItem],
    settings: CalculatorSettings,
    strategy: WithdrawalStrategy | None = None,
) -> List[ProjectionDetail]:
    """Runs the projection from `settings.current_year` to the last life-expectancy year.

    The inputs are never mutated. Each call builds its own strategy
    instance unless one is passed in, so repeated runs do not interfere.
    """
    validate_inputs(household, accounts, settings)
    strategy = strategy or create_strategy(
        settings.strategy_type, settings.strategy_params, settings.withdrawal_priority
    )
    filing_status = determine_filing_status(household.has_spouse, settings.filing_status or household.filing_status)
    deduction = standard_deduction(filing_status)
    balances = _by_type(accounts, "balance")
    plan_contributions = _by_type(accounts, "annual_contribution")
    end_year = household.end_year()

    logger.debug(
        "Projecting %s-%s with %s (%s)",
        settings.current_year,
        end_year,
        strategy.strategy_type.value,
        filing_status,
    )

    records: List[ProjectionDetail] = []
    debt = 0.0
    cumulative_liability = 0.0
    borrowing_logged = False
    exhausted_logged = False

    for year in range(settings.current_year, end_year + 1):
        age = year - household.birth_year
        spouse_age = household.spouse_age(year)
        retired = age >= settings.retirement_age
        growth = settings.growth_rate(retired)
        inflation_factor = (1.0 + settings.inflation_rate) ** (year - settings.current_year)

        ssa_income = _ssa_income(household, settings, year, inflation_factor)
        other_income = _other_income(other_incomes, year, inflation_factor)
        living, essential, discretionary = _expenses(expenses, settings, age, year, retired, inflation_factor)

        opening = dict(balances)
        required_rmd = required_minimum_distribution(
            opening[ACCOUNT_401K] + opening[ACCOUNT_IRA], age, settings.rmd_age
        )

        plan = WithdrawalPlan()
        if retired:
            shortfall = max(0.0, living - ssa_income - other_income)
            context = WithdrawalContext(
                age=age,
                year=year,
                years_remaining=end_year - year,
                filing_status=filing_status,
                other_ordinary_income=other_income,
                essential_expenses=essential,
                discretionary_expenses=discretionary,
                guaranteed_income=ssa_income + other_income,
                inflation_rate=settings.inflation_rate,
                growth_rate=growth,
                rmd_age=settings.rmd_age,
                required_rmd=required_rmd,
                ira_rmd_share=safe_divide(opening[ACCOUNT_IRA], opening[ACCOUNT_401K] + opening[ACCOUNT_IRA]) * required_rmd,
                priority=settings.withdrawal_priority,
            )
            plan = strategy.select_withdrawals(shortfall, opening, context)
        rmd_taken = _enforce_rmd(plan, opening, required_rmd)

        deposits = dict(plan_contributions) if not retired else empty_balances()
        distributions = empty_balances()
        closing = empty_balances()
        for account_type in ACCOUNT_TYPES:
            available = opening[account_type] * (1.0 + growth) + deposits[account_type]
            distributions[account_type] = min(plan.get(account_type), max(0.0, available))
            closing[account_type] = available - distributions[account_type]

        qcd = min(plan.qcd, distributions[ACCOUNT_IRA])
        roth_conversion = min(
            plan.roth_conversion,
            max(0.0, distributions[ACCOUNT_401K] + distributions[ACCOUNT_IRA] - qcd),
        )
        closing[ACCOUNT_ROTH] += roth_conversion
        contribution = sum(deposits.values()) + roth_conversion

        ordinary_income = distributions[ACCOUNT_401K] + distributions[ACCOUNT_IRA] - qcd + other_income
        ordinary_taxable = max(0.0, ordinary_income - deduction)
        capital_gains = distributions[ACCOUNT_TAXABLE]
        tax = calculate_progressive_tax(ordinary_taxable, filing_status) + calculate_capital_gains_tax(
            capital_gains, filing_status
        )

        investment_income = 0.0
        total_income = ssa_income + sum(distributions.values()) + other_income + investment_income
        after_tax_income = total_income - tax
        special_expenses = qcd + roth_conversion
        total_expenses = living + special_expenses
        # before retirement living costs are paid from earned income
        gap = after_tax_income - total_expenses if retired else after_tax_income - special_expenses

        interest_paid = 0.0
        principal_paid = 0.0
        surplus = max(0.0, gap)
        if settings.enable_borrowing:
            interest_due = debt * settings.debt_interest_rate
            debt += interest_due
            if gap < 0:
                debt += -gap
                cumulative_liability += -gap
                if not borrowing_logged:
                    logger.warning("Borrowing %.2f to cover the %s shortfall", -gap, year)
                    borrowing_logged = True
            elif gap > 0 and debt > 0:
                interest_paid = min(gap, interest_due)
                principal_paid = min(gap - interest_paid, debt - interest_paid)
                debt = max(0.0, debt - interest_paid - principal_paid)
                surplus = gap - interest_paid - principal_paid
        closing[ACCOUNT_TAXABLE] += surplus

        assets = sum(closing.values())
        if assets <= 0 and not exhausted_logged and any(v > 0 for v in opening.values()):
            logger.warning("All accounts exhausted in %s (age %s)", year, age)
            exhausted_logged = True

        records.append(
            ProjectionDetail(
                year=year,
                age=age,
                event=life_events(age, spouse_age, household, settings),
                spouse_age=spouse_age,
                ssa_income=ssa_income,
                distribution_401k=distributions[ACCOUNT_401K],
                distribution_roth=distributions[ACCOUNT_ROTH],
                distribution_taxable=distributions[ACCOUNT_TAXABLE],
                distribution_hsa=distributions[ACCOUNT_HSA],
                distribution_ira=distributions[ACCOUNT_IRA],
                distribution_other=distributions[ACCOUNT_OTHER],
                investment_income=investment_income,
                other_recurring_income=other_income,
                total_income=total_income,
                after_tax_income=after_tax_income,
                living_expenses=living,
                special_expenses=special_expenses,
                total_expenses=total_expenses,
                gap_excess=gap,
                cumulative_liability=cumulative_liability,
                debt_balance=debt,
                debt_interest_paid=interest_paid,
                debt_principal_paid=principal_paid,
                assets_remaining=assets,
                networth=assets - debt,
                balance_401k=closing[ACCOUNT_401K],
                balance_roth=closing[ACCOUNT_ROTH],
                balance_investment=closing[ACCOUNT_TAXABLE],
                balance_other_investments=closing[ACCOUNT_OTHER],
                balance_hsa=closing[ACCOUNT_HSA],
                balance_ira=closing[ACCOUNT_IRA],
                taxable_income=ordinary_taxable + capital_gains,
                tax=tax,
                rmd_amount=rmd_taken,
                roth_conversion=roth_conversion,
                qcd_amount=qcd,
                surplus_reinvested=surplus,
                contribution=contribution,
            )
        )
        balances = closing

    logger.debug(
        "Projection finished: %d years, final net worth %.2f",
        len(records),
        records[-1].networth if records else 0.0,
    )
    return records


def project_plan(plan: PlanConfig, settings: CalculatorSettings, strategy: WithdrawalStrategy | None = None) -> List[ProjectionDetail]:
    return project(plan.household, plan.accounts, plan.expenses, plan.other_incomes, settings, strategy)
