import pytest

from retireplan.config import AppConfig
from retireplan.data_model import (
    AccountItem,
    CalculatorSettings,
    ExpenseItem,
    Household,
    StrategyType,
)


@pytest.fixture
def household():
    return Household(birth_year=1974, life_expectancy=90, filing_status="Single")


@pytest.fixture
def accounts():
    return [AccountItem(name="Work 401k", account_type="401k", balance=500000.0)]


@pytest.fixture
def expenses():
    return [ExpenseItem(name="Living", amount_before_65=3000.0, amount_after_65=3000.0)]


@pytest.fixture
def settings():
    return CalculatorSettings(
        current_year=2024,
        retirement_age=65,
        retirement_start_year=2039,
        years_to_retirement=15,
        annual_retirement_expenses=36000.0,
        include_planner_ssa=False,
        strategy_type=StrategyType.FOUR_PERCENT,
    )


@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        data_dir=str(tmp_path),
        db_path=str(tmp_path / "projections.sqlite"),
        mc_simulations=5,
        compare_workers=1,
        compare_processes=False,
    )
