from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

import pandas as pd

from .base import ColumnDefinition, TableModel, coerce_bool, coerce_float, coerce_int


def _expense_defaults() -> List[dict[str, float | str]]:
    return [
        {"Name": "Rent / Mortgage", "Monthly Before 65": 2200.0, "Monthly After 65": 1800.0},
        {"Name": "Groceries", "Monthly Before 65": 800.0, "Monthly After 65": 700.0},
        {"Name": "Utilities", "Monthly Before 65": 350.0, "Monthly After 65": 350.0},
        {"Name": "Medical", "Monthly Before 65": 300.0, "Monthly After 65": 600.0},
        {"Name": "Travel", "Monthly Before 65": 400.0, "Monthly After 65": 700.0},
    ]


def _other_income_defaults() -> List[dict[str, float | str | bool]]:
    return [
        {
            "Name": "Rental Income",
            "Annual Amount": 12000.0,
            "Start Year": "",
            "End Year": "",
            "Inflation Adjusted": True,
        },
    ]


class ExpenseTableModel(TableModel):
    def __init__(self) -> None:
        columns = [
            ColumnDefinition("Name", "Name", help="rent/taxes/maintenance/groceries/utilities/medical are essential"),
            ColumnDefinition(
                "Monthly Before 65",
                "Monthly Before 65 (USD)",
                kind="number",
                default=0.0,
                min_value=0.0,
                step=50.0,
                format="%.2f",
            ),
            ColumnDefinition(
                "Monthly After 65",
                "Monthly After 65 (USD)",
                kind="number",
                default=0.0,
                min_value=0.0,
                step=50.0,
                format="%.2f",
            ),
        ]
        super().__init__("expenses", columns, _expense_defaults())


class OtherIncomeTableModel(TableModel):
    def __init__(self) -> None:
        columns = [
            ColumnDefinition("Name", "Name"),
            ColumnDefinition(
                "Annual Amount",
                "Annual Amount (USD)",
                kind="number",
                default=0.0,
                min_value=0.0,
                step=1000.0,
                format="%.2f",
            ),
            ColumnDefinition("Start Year", "Start Year", kind="number", default="", help="empty = from plan start"),
            ColumnDefinition("End Year", "End Year", kind="number", default="", help="empty = for life"),
            ColumnDefinition("Inflation Adjusted", "Inflation Adjusted", kind="bool", default=False),
        ]
        super().__init__("other_income", columns, _other_income_defaults())


@dataclass
class ExpenseItem:
    name: str
    amount_before_65: float
    amount_after_65: float
    id: int | None = None

    def monthly_amount(self, age: int) -> float:
        return self.amount_after_65 if age >= 65 else self.amount_before_65


@dataclass
class OtherIncomeItem:
    name: str
    annual_amount: float
    start_year: int | None = None
    end_year: int | None = None
    inflation_adjusted: bool = False
    id: int | None = None

    def is_active(self, year: int) -> bool:
        if self.start_year and year < self.start_year:
            return False
        if self.end_year and year > self.end_year:
            return False
        return True


def rows_to_expenses(rows: Iterable[dict] | None) -> List[ExpenseItem]:
    items: List[ExpenseItem] = []
    for row in rows or []:
        name = str(row.get("Name", row.get("expense_name", "")) or "").strip()
        if not name:
            continue
        items.append(
            ExpenseItem(
                name=name,
                amount_before_65=coerce_float(row.get("Monthly Before 65", row.get("amount_before_65"))),
                amount_after_65=coerce_float(row.get("Monthly After 65", row.get("amount_after_65"))),
                id=coerce_int(row.get("id")),
            )
        )
    return items


def rows_to_other_incomes(rows: Iterable[dict] | None) -> List[OtherIncomeItem]:
    items: List[OtherIncomeItem] = []
    for row in rows or []:
        name = str(row.get("Name", row.get("income_name", "")) or "").strip()
        if not name:
            continue
        amount = coerce_float(row.get("Annual Amount", row.get("annual_amount", row.get("amount"))))
        if amount == 0.0:
            continue
        items.append(
            OtherIncomeItem(
                name=name,
                annual_amount=amount,
                start_year=coerce_int(row.get("Start Year", row.get("start_year"))),
                end_year=coerce_int(row.get("End Year", row.get("end_year"))),
                inflation_adjusted=coerce_bool(row.get("Inflation Adjusted", row.get("inflation_adjusted", False))),
                id=coerce_int(row.get("id")),
            )
        )
    return items


def dataframe_to_expenses(df: pd.DataFrame) -> List[ExpenseItem]:
    return rows_to_expenses(df.to_dict("records"))


def dataframe_to_other_incomes(df: pd.DataFrame) -> List[OtherIncomeItem]:
    return rows_to_other_incomes(df.to_dict("records"))
