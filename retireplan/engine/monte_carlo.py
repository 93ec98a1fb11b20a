"""Stochastic wrapper around `project`.

Each simulation draws one return for the accumulation phase and one for
retirement from a normal distribution around the configured growth rates,
clamped at zero, and runs the deterministic projection with them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Sequence

import numpy as np

from ..data_model import AccountItem, CalculatorSettings, ExpenseItem, Household, OtherIncomeItem, ProjectionDetail
from .simulator import project

logger = logging.getLogger(__name__)

VOLATILITY_BEFORE_RETIREMENT = 0.15
VOLATILITY_DURING_RETIREMENT = 0.12
NEGATIVE_YEAR_TOLERANCE = 0.20
PERCENTILES = (25, 75, 90, 95)


@dataclass
class MonteCarloRun:
    simulation: int
    growth_before: float
    growth_during: float
    success: bool
    final_networth: float
    min_networth: float
    years_with_negative_cash_flow: int
    total_taxes: float
    projections: List[ProjectionDetail] = field(default_factory=list, repr=False)


@dataclass
class MonteCarloOutcome:
    runs: List[MonteCarloRun]
    summary: Dict[str, float]

    def to_payload(self, include_runs: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"summary": self.summary}
        if include_runs:
            payload["runs"] = [
                {
                    "simulation": run.simulation,
                    "growth_before": run.growth_before,
                    "growth_during": run.growth_during,
                    "success": run.success,
                    "final_networth": run.final_networth,
                    "min_networth": run.min_networth,
                    "years_with_negative_cash_flow": run.years_with_negative_cash_flow,
                    "total_taxes": run.total_taxes,
                }
                for run in self.runs
            ]
        return payload


def evaluate_run(simulation: int, settings: CalculatorSettings, records: Sequence[ProjectionDetail]) -> MonteCarloRun:
    final_networth = records[-1].networth if records else 0.0
    negative_years = sum(1 for r in records if r.gap_excess < 0)
    return MonteCarloRun(
        simulation=simulation,
        growth_before=settings.growth_rate_before_retirement,
        growth_during=settings.growth_rate_during_retirement,
        success=final_networth > 0 and negative_years < len(records) * NEGATIVE_YEAR_TOLERANCE,
        final_networth=final_networth,
        min_networth=min((r.networth for r in records), default=0.0),
        years_with_negative_cash_flow=negative_years,
        total_taxes=sum(r.tax for r in records),
        projections=list(records),
    )


def summarize_runs(runs: Sequence[MonteCarloRun]) -> Dict[str, float]:
    if not runs:
        return {"success_rate": 0.0, "simulations": 0}
    finals = np.sort(np.array([run.final_networth for run in runs], dtype=float))
    n = len(finals)
    summary: Dict[str, float] = {
        "simulations": n,
        "success_rate": sum(run.success for run in runs) / n * 100.0,
        "average_final_networth": float(finals.mean()),
        "median_final_networth": float(finals[n // 2]),
        "min_final_networth": float(finals[0]),
        "max_final_networth": float(finals[-1]),
        "average_min_networth": float(np.mean([run.min_networth for run in runs])),
        "average_years_with_negative_cash_flow": float(np.mean([run.years_with_negative_cash_flow for run in runs])),
        "average_total_taxes": float(np.mean([run.total_taxes for run in runs])),
    }
    # nearest-rank pick on the sorted finals, not interpolated
    for pct in PERCENTILES:
        summary[f"percentile_{pct}"] = float(finals[min(n - 1, int(n * pct / 100))])
    return summary


def run_monte_carlo(
    household: Household,
    accounts: Sequence[AccountItem],
    expenses: Sequence[ExpenseItem],
    other_incomes: Sequence[OtherIncomeItem],
    settings: CalculatorSettings,
    num_simulations: int = 1000,
    seed: int | None = None,
    volatility_before: float = VOLATILITY_BEFORE_RETIREMENT,
    volatility_during: float = VOLATILITY_DURING_RETIREMENT,
) -> MonteCarloOutcome:
    num_simulations = max(0, int(num_simulations))
    rng = np.random.default_rng(seed)
    before = np.maximum(0.0, rng.normal(settings.growth_rate_before_retirement, volatility_before, num_simulations))
    during = np.maximum(0.0, rng.normal(settings.growth_rate_during_retirement, volatility_during, num_simulations))

    runs: List[MonteCarloRun] = []
    for index in range(num_simulations):
        sim_settings = replace(
            settings,
            growth_rate_before_retirement=float(before[index]),
            growth_rate_during_retirement=float(during[index]),
        )
        records = project(household, accounts, expenses, other_incomes, sim_settings)
        runs.append(evaluate_run(index + 1, sim_settings, records))

    summary = summarize_runs(runs)
    logger.info("Monte Carlo: %d simulations, success rate %.1f%%", num_simulations, summary["success_rate"])
    return MonteCarloOutcome(runs=runs, summary=summary)
