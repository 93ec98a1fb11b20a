from .accounts import (
    ACCOUNT_401K,
    ACCOUNT_HSA,
    ACCOUNT_IRA,
    ACCOUNT_OTHER,
    ACCOUNT_ROTH,
    ACCOUNT_TAXABLE,
    ACCOUNT_TYPES,
    TRADITIONAL_TYPES,
    AccountItem,
    AccountTableModel,
    dataframe_to_accounts,
    normalize_account_type,
    rows_to_accounts,
)
from .cashflow import (
    ExpenseItem,
    ExpenseTableModel,
    OtherIncomeItem,
    OtherIncomeTableModel,
    dataframe_to_expenses,
    dataframe_to_other_incomes,
    rows_to_expenses,
    rows_to_other_incomes,
)
from .household import (
    FILING_HEAD,
    FILING_JOINT,
    FILING_SEPARATE,
    FILING_SINGLE,
    FILING_STATUSES,
    Household,
    household_from_payload,
)
from .plan import PlanConfig, plan_from_payload
from .projection import BALANCE_FIELDS, DISTRIBUTION_FIELDS, PROJECTION_COLUMNS, ProjectionDetail
from .settings import (
    STRATEGY_LABELS,
    WITHDRAWAL_PRIORITIES,
    CalculatorSettings,
    StrategyParams,
    StrategyType,
    build_calculator_settings,
    parse_strategy_type,
)

__all__ = [
    "ACCOUNT_401K",
    "ACCOUNT_HSA",
    "ACCOUNT_IRA",
    "ACCOUNT_OTHER",
    "ACCOUNT_ROTH",
    "ACCOUNT_TAXABLE",
    "ACCOUNT_TYPES",
    "TRADITIONAL_TYPES",
    "AccountItem",
    "AccountTableModel",
    "ExpenseItem",
    "ExpenseTableModel",
    "OtherIncomeItem",
    "OtherIncomeTableModel",
    "FILING_HEAD",
    "FILING_JOINT",
    "FILING_SEPARATE",
    "FILING_SINGLE",
    "FILING_STATUSES",
    "Household",
    "PlanConfig",
    "ProjectionDetail",
    "BALANCE_FIELDS",
    "DISTRIBUTION_FIELDS",
    "PROJECTION_COLUMNS",
    "STRATEGY_LABELS",
    "WITHDRAWAL_PRIORITIES",
    "CalculatorSettings",
    "StrategyParams",
    "StrategyType",
    "build_calculator_settings",
    "dataframe_to_accounts",
    "dataframe_to_expenses",
    "dataframe_to_other_incomes",
    "household_from_payload",
    "normalize_account_type",
    "parse_strategy_type",
    "plan_from_payload",
    "rows_to_accounts",
    "rows_to_expenses",
    "rows_to_other_incomes",
]
