from .constants import (
    ACCOUNT_401K,
    ACCOUNT_HSA,
    ACCOUNT_IRA,
    ACCOUNT_OTHER,
    ACCOUNT_ROTH,
    ACCOUNT_TAXABLE,
    ACCOUNT_TYPES,
    TRADITIONAL_TYPES,
)
from .defaults import default_account_rows
from .items import AccountItem, dataframe_to_accounts, normalize_account_type, rows_to_accounts
from .table import AccountTableModel

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
    "dataframe_to_accounts",
    "default_account_rows",
    "normalize_account_type",
    "rows_to_accounts",
]
