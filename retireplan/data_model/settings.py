from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping

from .base import coerce_bool, coerce_float, coerce_int

# Defaults applied when settings are built from stored rows.
DEFAULT_GROWTH_BEFORE_RETIREMENT = 0.10
DEFAULT_GROWTH_DURING_RETIREMENT = 0.05
DEFAULT_INFLATION_RATE = 0.04
DEFAULT_CAPITAL_GAINS_RATE = 0.20
DEFAULT_RETIREMENT_INCOME_TAX_RATE = 0.25
DEFAULT_DEBT_INTEREST_RATE = 0.06
DEFAULT_SSA_START_AGE = 62
DEFAULT_RMD_AGE = 73


class StrategyType(str, Enum):
    """Withdrawal strategies, grouped by family."""

    # amount-based
    FOUR_PERCENT = "four_percent"
    FIXED_PERCENTAGE = "fixed_percentage"
    FIXED_DOLLAR = "fixed_dollar"
    SWP = "swp"
    # sequence-based
    PROPORTIONAL = "proportional"
    BRACKET_TOPPING = "bracket_topping"
    # market-responsive
    BUCKET = "bucket"
    GUARDRAILS = "guardrails"
    FLOOR_UPSIDE = "floor_upside"
    # tax optimization
    ROTH_CONVERSION = "roth_conversion"
    QCD = "qcd"


STRATEGY_LABELS: dict[StrategyType, str] = {
    StrategyType.FOUR_PERCENT: "4% Rule",
    StrategyType.FIXED_PERCENTAGE: "Fixed Percentage",
    StrategyType.FIXED_DOLLAR: "Fixed Dollar",
    StrategyType.SWP: "Systematic Withdrawal (earnings only)",
    StrategyType.PROPORTIONAL: "Proportional",
    StrategyType.BRACKET_TOPPING: "Bracket Topping",
    StrategyType.BUCKET: "Bucket",
    StrategyType.GUARDRAILS: "Guardrails",
    StrategyType.FLOOR_UPSIDE: "Floor and Upside",
    StrategyType.ROTH_CONVERSION: "Roth Conversion Bridge",
    StrategyType.QCD: "Qualified Charitable Distributions",
}

WITHDRAWAL_PRIORITIES: tuple[str, ...] = (
    "default",
    "longevity",
    "legacy",
    "tax_optimization",
    "stable_income",
    "sequence_risk",
    "liquidity",
)


def parse_strategy_type(raw: Any) -> StrategyType:
    if isinstance(raw, StrategyType):
        return raw
    key = str(raw or "").strip().lower().replace("-", "_").replace(" ", "_")
    if key in {"4_percent", "4%", "4%_rule", "four_percent_rule"}:
        return StrategyType.FOUR_PERCENT
    try:
        return StrategyType(key)
    except ValueError as exc:
        raise ValueError(f"Unknown withdrawal strategy: {raw!r}") from exc


@dataclass(frozen=True)
class StrategyParams:
    fixed_percentage_rate: float = 0.04
    fixed_dollar_amount: float = 0.0
    guardrail_ceiling: float = 0.06
    guardrail_floor: float = 0.03
    guardrail_adjustment: float = 0.10
    # Taxable ordinary income ceiling; 0 means "top of the 12% bracket".
    bracket_threshold: float = 0.0
    qcd_annual_limit: float = 105000.0
    bucket_cash_years: float = 3.0
    bucket_income_years: float = 7.0

    def clamped(self) -> "StrategyParams":
        """Negative values are treated as zero."""
        return replace(self, **{f.name: max(0.0, float(getattr(self, f.name))) for f in fields(self)})


@dataclass(frozen=True)
class CalculatorSettings:
    current_year: int
    retirement_age: int
    retirement_start_year: int
    years_to_retirement: int
    annual_retirement_expenses: float = 0.0
    growth_rate_before_retirement: float = DEFAULT_GROWTH_BEFORE_RETIREMENT
    growth_rate_during_retirement: float = DEFAULT_GROWTH_DURING_RETIREMENT
    inflation_rate: float = DEFAULT_INFLATION_RATE
    capital_gains_tax_rate: float = DEFAULT_CAPITAL_GAINS_RATE
    income_tax_rate_retirement: float = DEFAULT_RETIREMENT_INCOME_TAX_RATE
    filing_status: str | None = None
    enable_borrowing: bool = False
    debt_interest_rate: float = DEFAULT_DEBT_INTEREST_RATE
    ssa_start_age: int = DEFAULT_SSA_START_AGE
    include_planner_ssa: bool = True
    include_spouse_ssa: bool = False
    planner_ssa_base: float = 20000.0
    spouse_ssa_base: float = 15000.0
    rmd_age: int = DEFAULT_RMD_AGE
    strategy_type: StrategyType = StrategyType.FOUR_PERCENT
    strategy_params: StrategyParams = field(default_factory=StrategyParams)
    withdrawal_priority: str = "default"
    withdrawal_secondary_priority: str = "tax_optimization"

    def growth_rate(self, retired: bool) -> float:
        return self.growth_rate_during_retirement if retired else self.growth_rate_before_retirement


def _percent(value: Any, default: float) -> float:
    """Stored rows keep rates as percentages (10 = 10%)."""
    if value is None or value == "":
        return default
    number = coerce_float(value, default * 100.0)
    return number / 100.0


def build_calculator_settings(
    settings_row: Mapping[str, Any] | None,
    plan_row: Mapping[str, Any] | None,
    current_year: int,
    retirement_age: int,
    years_to_retirement: int,
    annual_expenses: float,
) -> CalculatorSettings:
    """Builds engine settings from stored scenario/plan rows.

    Missing optional values fall back to the reference defaults (growth
    10%/5%, inflation 4%, capital gains 20%, retirement income tax 25%).
    Percent columns in the rows are stored as whole numbers.
    """
    row = dict(settings_row or {})
    plan = dict(plan_row or {})
    params_row = dict(row.get("strategy_params") or {})
    params = StrategyParams(
        **{
            f.name: coerce_float(params_row.get(f.name), getattr(StrategyParams(), f.name))
            for f in fields(StrategyParams)
        }
    )
    return CalculatorSettings(
        current_year=current_year,
        retirement_age=retirement_age,
        retirement_start_year=current_year + years_to_retirement,
        years_to_retirement=years_to_retirement,
        annual_retirement_expenses=annual_expenses,
        growth_rate_before_retirement=_percent(row.get("growth_rate_before_retirement"), DEFAULT_GROWTH_BEFORE_RETIREMENT),
        growth_rate_during_retirement=_percent(row.get("growth_rate_during_retirement"), DEFAULT_GROWTH_DURING_RETIREMENT),
        inflation_rate=_percent(row.get("inflation_rate"), DEFAULT_INFLATION_RATE),
        capital_gains_tax_rate=_percent(row.get("capital_gains_tax_rate"), DEFAULT_CAPITAL_GAINS_RATE),
        income_tax_rate_retirement=_percent(row.get("income_tax_rate_retirement"), DEFAULT_RETIREMENT_INCOME_TAX_RATE),
        filing_status=row.get("filing_status") or plan.get("filing_status") or None,
        enable_borrowing=coerce_bool(row.get("enable_borrowing", False)),
        debt_interest_rate=_percent(row.get("debt_interest_rate"), DEFAULT_DEBT_INTEREST_RATE),
        ssa_start_age=coerce_int(row.get("ssa_start_age"), DEFAULT_SSA_START_AGE),
        include_planner_ssa=coerce_bool(row.get("planner_ssa_income", True)),
        include_spouse_ssa=coerce_bool(row.get("spouse_ssa_income", plan.get("include_spouse", False))),
        rmd_age=coerce_int(row.get("rmd_age"), DEFAULT_RMD_AGE),
        strategy_type=parse_strategy_type(row.get("strategy_type") or StrategyType.FOUR_PERCENT),
        strategy_params=params,
        withdrawal_priority=str(row.get("withdrawal_priority") or "default"),
        withdrawal_secondary_priority=str(row.get("withdrawal_secondary_priority") or "tax_optimization"),
    )
