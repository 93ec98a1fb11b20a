from .compare import StrategyResult, compare_strategies
from .monte_carlo import MonteCarloOutcome, run_monte_carlo
from .simulator import ProjectionInputError, project, project_plan, safe_divide, validate_inputs
from .tax import (
    calculate_capital_gains_tax,
    calculate_progressive_tax,
    determine_filing_status,
    standard_deduction,
)
from .withdrawal import WithdrawalContext, WithdrawalPlan, WithdrawalStrategy, create_strategy

__all__ = [
    "MonteCarloOutcome",
    "ProjectionInputError",
    "StrategyResult",
    "WithdrawalContext",
    "WithdrawalPlan",
    "WithdrawalStrategy",
    "calculate_capital_gains_tax",
    "calculate_progressive_tax",
    "compare_strategies",
    "create_strategy",
    "determine_filing_status",
    "project",
    "project_plan",
    "run_monte_carlo",
    "safe_divide",
    "standard_deduction",
    "validate_inputs",
]
