import copy

from retireplan.data_model import StrategyType
from retireplan.engine.compare import compare_strategies
from retireplan.engine.simulator import project


def test_compare_runs_every_strategy_in_order(household, accounts, expenses, settings):
    results = compare_strategies(household, accounts, expenses, [], settings, max_workers=1)

    assert [r.strategy_type for r in results] == list(StrategyType)
    assert all(len(r.records) == 41 for r in results)


def test_compare_matches_single_runs(household, accounts, expenses, settings):
    results = compare_strategies(
        household,
        accounts,
        expenses,
        [],
        settings,
        strategies=[StrategyType.FOUR_PERCENT],
        max_workers=1,
    )

    assert results[0].records == project(household, accounts, expenses, [], settings)


def test_compare_with_threads_leaves_inputs_untouched(household, accounts, expenses, settings):
    before = copy.deepcopy((accounts, expenses))

    threaded = compare_strategies(household, accounts, expenses, [], settings, max_workers=4, use_processes=False)
    sequential = compare_strategies(household, accounts, expenses, [], settings, max_workers=1)

    assert (accounts, expenses) == before
    assert [r.records for r in threaded] == [r.records for r in sequential]


def test_summary_fields(household, accounts, expenses, settings):
    result = compare_strategies(
        household, accounts, expenses, [], settings, strategies=[StrategyType.PROPORTIONAL], max_workers=1
    )[0]

    summary = result.summary()

    assert summary["strategy"] == "proportional"
    assert summary["label"] == "Proportional"
    assert summary["final_networth"] == result.records[-1].networth
    assert summary["total_taxes"] >= 0.0
    assert summary["depletion_age"] is None
