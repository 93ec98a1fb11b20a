import copy
from dataclasses import replace

import pytest

from retireplan.data_model import (
    AccountItem,
    CalculatorSettings,
    ExpenseItem,
    Household,
    OtherIncomeItem,
    StrategyType,
)
from retireplan.engine.simulator import (
    ProjectionInputError,
    life_events,
    project,
    required_minimum_distribution,
    safe_divide,
)

# (account type, balance field, distribution field)
ACCOUNT_FIELDS = [
    ("401k", "balance_401k", "distribution_401k"),
    ("IRA", "balance_ira", "distribution_ira"),
    ("Roth IRA", "balance_roth", "distribution_roth"),
    ("HSA", "balance_hsa", "distribution_hsa"),
    ("Taxable", "balance_investment", "distribution_taxable"),
    ("Other", "balance_other_investments", "distribution_other"),
]


@pytest.fixture
def mixed_accounts():
    return [
        AccountItem(name="Work 401k", account_type="401k", balance=250000.0, annual_contribution=20000.0),
        AccountItem(name="Rollover", account_type="IRA", balance=120000.0),
        AccountItem(name="Roth", account_type="Roth IRA", balance=60000.0, annual_contribution=7000.0),
        AccountItem(name="HSA", account_type="HSA", balance=15000.0, annual_contribution=3000.0),
        AccountItem(name="Brokerage", account_type="Taxable", balance=90000.0),
    ]


@pytest.fixture
def mixed_expenses():
    return [
        ExpenseItem(name="Mortgage", amount_before_65=2500.0, amount_after_65=1500.0),
        ExpenseItem(name="Groceries", amount_before_65=800.0, amount_after_65=700.0),
        ExpenseItem(name="Travel", amount_before_65=300.0, amount_after_65=900.0),
    ]


def _check_reconciliation(records, accounts, settings):
    opening = {t: sum(a.balance for a in accounts if a.normalized_type() == t) for t, _, _ in ACCOUNT_FIELDS}
    contributions = {
        t: sum(a.annual_contribution for a in accounts if a.normalized_type() == t) for t, _, _ in ACCOUNT_FIELDS
    }
    for record in records:
        retired = record.age >= settings.retirement_age
        growth = settings.growth_rate(retired)
        for account_type, balance_field, distribution_field in ACCOUNT_FIELDS:
            expected = opening[account_type] * (1 + growth) - getattr(record, distribution_field)
            if not retired:
                expected += contributions[account_type]
            if account_type == "Roth IRA":
                expected += record.roth_conversion
            if account_type == "Taxable":
                expected += record.surplus_reinvested
            assert getattr(record, balance_field) == pytest.approx(expected, abs=1e-6)
            opening[account_type] = getattr(record, balance_field)


def test_example_household_projection(household, accounts, expenses, settings):
    records = project(household, accounts, expenses, [], settings)

    assert len(records) == 41
    assert records[0].year == 2024 and records[0].age == 50
    assert records[-1].age == 90
    for record in records[:15]:
        assert record.total_distributions == 0.0
        assert record.gap_excess == 0.0
    first_retired = records[15]
    assert first_retired.age == 65
    assert first_retired.distribution_401k == pytest.approx(0.04 * 500000 * 1.1 ** 15)
    assert first_retired.living_expenses == pytest.approx(36000 * 1.04 ** 15)
    assert all(r.networth > 0 for r in records)


def test_balances_reconcile_every_year(household, mixed_accounts, mixed_expenses, settings):
    run_settings = replace(settings, include_planner_ssa=True, strategy_type=StrategyType.PROPORTIONAL)

    records = project(household, mixed_accounts, mixed_expenses, [], run_settings)

    _check_reconciliation(records, mixed_accounts, run_settings)


@pytest.mark.parametrize("strategy_type", list(StrategyType))
def test_record_identities_hold_for_every_strategy(strategy_type, household, mixed_accounts, mixed_expenses, settings):
    run_settings = replace(settings, include_planner_ssa=True, strategy_type=strategy_type, enable_borrowing=True)
    incomes = [OtherIncomeItem(name="Pension", annual_amount=12000.0, start_year=2040, inflation_adjusted=True)]

    records = project(household, mixed_accounts, mixed_expenses, incomes, run_settings)

    _check_reconciliation(records, mixed_accounts, run_settings)
    for record in records:
        assert record.total_income == pytest.approx(
            record.ssa_income + record.total_distributions + record.other_recurring_income + record.investment_income
        )
        assert record.after_tax_income == pytest.approx(record.total_income - record.tax)
        assert record.networth == pytest.approx(record.assets_remaining - record.debt_balance)
        assert record.assets_remaining == pytest.approx(record.total_balance)
        assert record.tax >= 0.0
        for _, balance_field, distribution_field in ACCOUNT_FIELDS:
            assert getattr(record, distribution_field) >= 0.0
            assert getattr(record, balance_field) >= -1e-6


def test_projection_is_deterministic_and_does_not_mutate_inputs(household, mixed_accounts, mixed_expenses, settings):
    before = copy.deepcopy((mixed_accounts, mixed_expenses))

    first = project(household, mixed_accounts, mixed_expenses, [], settings)
    second = project(household, mixed_accounts, mixed_expenses, [], settings)

    assert first == second
    assert (mixed_accounts, mixed_expenses) == before


def test_borrowing_accumulates_debt(household, settings):
    accounts = [AccountItem(name="Brokerage", account_type="Taxable", balance=1000.0)]
    expenses = [ExpenseItem(name="Rent", amount_before_65=2000.0, amount_after_65=4000.0)]
    run_settings = replace(settings, enable_borrowing=True, debt_interest_rate=0.05)

    records = project(household, accounts, expenses, [], run_settings)

    retired = [r for r in records if r.age >= 65]
    assert any(r.gap_excess < 0 for r in retired)
    assert retired[-1].debt_balance > 0
    assert retired[-1].networth < 0
    liabilities = [r.cumulative_liability for r in records]
    assert liabilities == sorted(liabilities)


def test_without_borrowing_there_is_no_debt(household, settings):
    accounts = [AccountItem(name="Brokerage", account_type="Taxable", balance=1000.0)]
    expenses = [ExpenseItem(name="Rent", amount_before_65=2000.0, amount_after_65=4000.0)]

    records = project(household, accounts, expenses, [], settings)

    assert all(r.debt_balance == 0.0 and r.cumulative_liability == 0.0 for r in records)
    assert any(r.gap_excess < 0 for r in records)


def test_required_minimum_distribution_is_taken():
    household = Household(birth_year=1950, life_expectancy=90)
    accounts = [AccountItem(name="IRA", account_type="IRA", balance=1_000_000.0)]
    settings = CalculatorSettings(
        current_year=2024,
        retirement_age=65,
        retirement_start_year=2024,
        years_to_retirement=0,
        include_planner_ssa=False,
    )

    records = project(household, accounts, [], [], settings)

    first = records[0]
    assert first.age == 74
    assert first.rmd_amount == pytest.approx(1_000_000.0 / 26.4)
    assert first.distribution_ira == pytest.approx(first.rmd_amount)
    assert first.surplus_reinvested > 0


def test_required_minimum_distribution_factor():
    assert required_minimum_distribution(100000.0, 72, 73) == 0.0
    assert required_minimum_distribution(274000.0, 73, 73) == pytest.approx(10000.0)
    assert required_minimum_distribution(100000.0, 120, 73) == pytest.approx(100000.0)


def test_life_events(household, settings):
    assert life_events(65, None, household, settings) == "Retirement, Medicare Eligibility"
    assert life_events(62, None, household, settings) == "SSA Eligibility"
    assert life_events(73, None, household, settings) == "RMD Starts"
    assert life_events(55, None, household, settings) is None


def test_invalid_inputs_raise(household, settings):
    with pytest.raises(ProjectionInputError):
        project(household, [AccountItem(name="Bad", account_type="401k", balance=-1.0)], [], [], settings)
    with pytest.raises(ProjectionInputError):
        project(Household(birth_year=1900, life_expectancy=90), [], [], [], settings)
    with pytest.raises(ProjectionInputError):
        project(household, [], [], [], replace(settings, retirement_age=-1))


def test_projection_runs_to_surviving_spouse_life_expectancy(settings):
    household = Household(
        birth_year=1930,
        life_expectancy=90,
        include_spouse=True,
        spouse_birth_year=1960,
        spouse_life_expectancy=95,
    )
    accounts = [AccountItem(name="IRA", account_type="IRA", balance=200000.0)]

    records = project(household, accounts, [], [], settings)

    assert records[0].year == 2024 and records[-1].year == 2055
    assert records[0].spouse_age == 64
    assert records[-1].spouse_age == 95


def test_safe_divide():
    assert safe_divide(1.0, 0.0) == 0.0
    assert safe_divide(6.0, 3.0) == 2.0

