from __future__ import annotations

from typing import Iterable

import pandas as pd

from ..data_model import PROJECTION_COLUMNS, ProjectionDetail

REQUIRED_COLUMNS = {"year", "age"}

# End-of-period values; everything else numeric is a yearly flow and is summed.
STOCK_COLUMNS = [
    "age",
    "spouse_age",
    "cumulative_liability",
    "debt_balance",
    "assets_remaining",
    "networth",
    "balance_401k",
    "balance_roth",
    "balance_investment",
    "balance_other_investments",
    "balance_hsa",
    "balance_ira",
]

PHASE_ACCUMULATION = "Accumulation"
PHASE_EARLY_RETIREMENT = "Early Retirement"
PHASE_RMD = "RMD Years"


def records_to_frame(records: Iterable[ProjectionDetail], scenario: str | None = None) -> pd.DataFrame:
    df = pd.DataFrame([r.to_row() for r in records], columns=list(PROJECTION_COLUMNS))
    if scenario is not None:
        df.insert(0, "scenario", scenario)
    return df


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    missing = REQUIRED_COLUMNS.difference(df.columns)
    if missing:
        raise KeyError(f"Missing required columns: {', '.join(sorted(missing))}")
    return df.sort_values("year").copy()


def _phase(age: int, retirement_age: int, rmd_age: int) -> str:
    if age < retirement_age:
        return PHASE_ACCUMULATION
    if age < rmd_age:
        return PHASE_EARLY_RETIREMENT
    return PHASE_RMD


def aggregate_period(
    df: pd.DataFrame,
    freq: str = "Y",
    retirement_age: int | None = None,
    rmd_age: int = 73,
) -> pd.DataFrame:
    """Aggregate yearly projection rows to Y / 5Y / 10Y buckets or life phases.

    Flow columns are summed over the bucket, balances are taken at its end.
    """
    if df.empty:
        return df

    freq = (freq or "Y").upper()
    df = _prepare(df)

    if freq == "Y":
        df["PeriodValue"] = df["year"]
        df["Period"] = df["year"].astype(str)
        return df.reset_index(drop=True)

    if freq in {"5Y", "10Y"}:
        span = int(freq[:-1])
        first = int(df["year"].iloc[0])
        df["PeriodValue"] = (df["year"] - first) // span
        start = first + df["PeriodValue"] * span
        end = (start + span - 1).clip(upper=int(df["year"].iloc[-1]))
        df["Period"] = start.astype(str) + "-" + end.astype(str)
    elif freq == "PHASE":
        if retirement_age is None:
            raise ValueError("Phase aggregation requires a retirement age.")
        df["Period"] = df["age"].apply(lambda age: _phase(int(age), retirement_age, rmd_age))
        df["PeriodValue"] = df["Period"].map(
            {PHASE_ACCUMULATION: 0, PHASE_EARLY_RETIREMENT: 1, PHASE_RMD: 2}
        )
    else:
        raise ValueError(f"Unsupported frequency: {freq}")

    numeric = [c for c in df.select_dtypes("number").columns if c not in {"PeriodValue"}]
    flows = [c for c in numeric if c not in STOCK_COLUMNS and c != "year"]
    stocks = [c for c in STOCK_COLUMNS if c in df.columns]
    grouped = df.groupby("PeriodValue", sort=True)
    out = grouped[flows].sum()
    out[stocks] = grouped[stocks].last()
    out["start_year"] = grouped["year"].first()
    out["end_year"] = grouped["year"].last()
    out["years"] = grouped["year"].count()
    out["Period"] = grouped["Period"].first()
    return out.reset_index()
