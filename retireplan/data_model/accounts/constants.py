from __future__ import annotations

ACCOUNT_401K = "401k"
ACCOUNT_IRA = "IRA"
ACCOUNT_ROTH = "Roth IRA"
ACCOUNT_HSA = "HSA"
ACCOUNT_TAXABLE = "Taxable"
ACCOUNT_OTHER = "Other"

# Canonical order used for balances, records and tie-breaking.
ACCOUNT_TYPES: tuple[str, ...] = (
    ACCOUNT_401K,
    ACCOUNT_IRA,
    ACCOUNT_ROTH,
    ACCOUNT_HSA,
    ACCOUNT_TAXABLE,
    ACCOUNT_OTHER,
)

TRADITIONAL_TYPES: tuple[str, ...] = (ACCOUNT_401K, ACCOUNT_IRA)

# Aliases accepted from stored rows / form input.
ACCOUNT_TYPE_ALIASES: dict[str, str] = {
    "401k": ACCOUNT_401K,
    "401(k)": ACCOUNT_401K,
    "403b": ACCOUNT_401K,
    "ira": ACCOUNT_IRA,
    "traditional ira": ACCOUNT_IRA,
    "roth": ACCOUNT_ROTH,
    "roth ira": ACCOUNT_ROTH,
    "roth 401k": ACCOUNT_ROTH,
    "hsa": ACCOUNT_HSA,
    "taxable": ACCOUNT_TAXABLE,
    "brokerage": ACCOUNT_TAXABLE,
    "other": ACCOUNT_OTHER,
}

OWNER_OPTIONS = ["planner", "spouse", "joint"]
