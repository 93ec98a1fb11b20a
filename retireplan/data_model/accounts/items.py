from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from ..base import coerce_float, coerce_int
from .constants import ACCOUNT_OTHER, ACCOUNT_TYPE_ALIASES


def normalize_account_type(raw: str | None) -> str:
    key = str(raw or "").strip().lower()
    return ACCOUNT_TYPE_ALIASES.get(key, ACCOUNT_OTHER)


@dataclass
class AccountItem:
    name: str
    account_type: str
    balance: float
    owner: str = "planner"
    annual_contribution: float = 0.0
    id: int | None = None

    def normalized_type(self) -> str:
        return normalize_account_type(self.account_type)


def rows_to_accounts(rows: Iterable[dict] | None) -> List[AccountItem]:
    """Parses editor/API rows; blank names are skipped, zero balances kept."""
    items: List[AccountItem] = []
    for row in rows or []:
        name = str(row.get("Name", row.get("account_name", "")) or "").strip()
        if not name:
            continue
        items.append(
            AccountItem(
                name=name,
                account_type=str(row.get("Account Type", row.get("account_type", "Other")) or "Other"),
                balance=coerce_float(row.get("Balance", row.get("balance"))),
                owner=str(row.get("Owner", row.get("owner", "planner")) or "planner"),
                annual_contribution=coerce_float(row.get("Annual Contribution", row.get("annual_contribution"))),
                id=coerce_int(row.get("id")),
            )
        )
    return items


def dataframe_to_accounts(df: pd.DataFrame) -> List[AccountItem]:
    return rows_to_accounts(df.to_dict("records"))
