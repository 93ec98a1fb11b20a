"""Side-by-side runs of every withdrawal strategy."""
from __future__ import annotations

import copy
import logging
import os
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Sequence

from ..data_model import (
    STRATEGY_LABELS,
    AccountItem,
    CalculatorSettings,
    ExpenseItem,
    Household,
    OtherIncomeItem,
    ProjectionDetail,
    StrategyType,
)
from .simulator import project

logger = logging.getLogger(__name__)


@dataclass
class StrategyResult:
    strategy_type: StrategyType
    records: List[ProjectionDetail]

    @property
    def label(self) -> str:
        return STRATEGY_LABELS[self.strategy_type]

    def summary(self) -> Dict[str, float | str | int | None]:
        records = self.records
        final = records[-1] if records else None
        depleted = next((r.age for r in records if r.networth <= 0), None)
        return {
            "strategy": self.strategy_type.value,
            "label": self.label,
            "final_networth": final.networth if final else 0.0,
            "total_taxes": sum(r.tax for r in records),
            "total_distributions": sum(r.total_distributions for r in records),
            "negative_years": sum(1 for r in records if r.gap_excess < 0),
            "depletion_age": depleted,
        }


def _run_strategy(
    strategy_type: StrategyType,
    household: Household,
    accounts: List[AccountItem],
    expenses: List[ExpenseItem],
    other_incomes: List[OtherIncomeItem],
    settings: CalculatorSettings,
) -> StrategyResult:
    run_settings = replace(settings, strategy_type=strategy_type)
    return StrategyResult(strategy_type, project(household, accounts, expenses, other_incomes, run_settings))


def _make_executor(max_workers: int, use_processes: bool) -> Executor:
    if use_processes:
        return ProcessPoolExecutor(max_workers=max_workers)
    return ThreadPoolExecutor(max_workers=max_workers)


def compare_strategies(
    household: Household,
    accounts: Sequence[AccountItem],
    expenses: Sequence[ExpenseItem],
    other_incomes: Sequence[OtherIncomeItem],
    settings: CalculatorSettings,
    strategies: Iterable[StrategyType] | None = None,
    max_workers: int | None = None,
    use_processes: bool = True,
) -> List[StrategyResult]:
    """Runs one projection per strategy on independent copies of the inputs.

    `max_workers=1` runs sequentially in-process; `None` or 0 uses the CPU
    count. Results come back in the order of `strategies`.
    """
    selected = list(strategies or StrategyType)
    if not max_workers:
        max_workers = os.cpu_count() or 1
    max_workers = min(max_workers, len(selected)) or 1

    def _job_args(strategy_type: StrategyType):
        return (
            strategy_type,
            household,
            copy.deepcopy(list(accounts)),
            copy.deepcopy(list(expenses)),
            copy.deepcopy(list(other_incomes)),
            settings,
        )

    results: Dict[StrategyType, StrategyResult] = {}
    if max_workers == 1:
        for strategy_type in selected:
            results[strategy_type] = _run_strategy(*_job_args(strategy_type))
    else:
        logger.debug("Comparing %d strategies on %d workers", len(selected), max_workers)
        with _make_executor(max_workers, use_processes) as pool:
            futures = {pool.submit(_run_strategy, *_job_args(s)): s for s in selected}
            for future in as_completed(futures):
                results[futures[future]] = future.result()
    return [results[s] for s in selected]
