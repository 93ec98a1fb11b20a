from __future__ import annotations

from .constants import ACCOUNT_TYPES, OWNER_OPTIONS
from .defaults import default_account_rows
from ..base import ColumnDefinition, TableModel


class AccountTableModel(TableModel):
    """Schema + defaults for account rows."""

    def __init__(self) -> None:
        columns = [
            ColumnDefinition("Name", "Name"),
            ColumnDefinition("Owner", "Owner", kind="select", default="planner", options=OWNER_OPTIONS),
            ColumnDefinition(
                "Account Type",
                "Account Type",
                kind="select",
                default="Taxable",
                options=list(ACCOUNT_TYPES),
                help="401k/IRA are tax-deferred, Roth IRA/HSA tax-free",
            ),
            ColumnDefinition(
                "Balance",
                "Balance (USD)",
                kind="number",
                default=0.0,
                min_value=0.0,
                step=1000.0,
                format="%.2f",
            ),
            ColumnDefinition(
                "Annual Contribution",
                "Annual Contribution (USD)",
                kind="number",
                default=0.0,
                min_value=0.0,
                step=500.0,
                format="%.2f",
                help="Applied until retirement",
            ),
        ]

        super().__init__("accounts", columns, default_account_rows())
