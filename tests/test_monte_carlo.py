from retireplan.engine.monte_carlo import MonteCarloRun, run_monte_carlo, summarize_runs


def _run(simulation, final, success=True):
    return MonteCarloRun(
        simulation=simulation,
        growth_before=0.1,
        growth_during=0.05,
        success=success,
        final_networth=final,
        min_networth=final / 2,
        years_with_negative_cash_flow=0,
        total_taxes=1000.0,
    )


def test_same_seed_reproduces_summary(household, accounts, expenses, settings):
    first = run_monte_carlo(household, accounts, expenses, [], settings, num_simulations=8, seed=42)
    second = run_monte_carlo(household, accounts, expenses, [], settings, num_simulations=8, seed=42)

    assert first.summary == second.summary
    assert [r.growth_before for r in first.runs] == [r.growth_before for r in second.runs]


def test_sampled_growth_rates_are_never_negative(household, accounts, expenses, settings):
    outcome = run_monte_carlo(
        household, accounts, expenses, [], settings, num_simulations=50, seed=7, volatility_before=1.0
    )

    assert len(outcome.runs) == 50
    assert all(r.growth_before >= 0.0 and r.growth_during >= 0.0 for r in outcome.runs)
    assert 0.0 <= outcome.summary["success_rate"] <= 100.0
    assert outcome.summary["simulations"] == 50


def test_summarize_runs_statistics():
    runs = [_run(i + 1, float(value), success=value > 0) for i, value in enumerate([-10, 0, 10, 20, 30])]

    summary = summarize_runs(runs)

    assert summary["success_rate"] == 60.0
    assert summary["median_final_networth"] == 10.0
    assert summary["min_final_networth"] == -10.0
    assert summary["max_final_networth"] == 30.0
    assert summary["average_final_networth"] == 10.0
    assert summary["percentile_25"] == 0.0
    assert summary["percentile_95"] == 30.0


def test_payload_includes_runs_on_request(household, accounts, expenses, settings):
    outcome = run_monte_carlo(household, accounts, expenses, [], settings, num_simulations=3, seed=1)

    assert "runs" not in outcome.to_payload()
    assert len(outcome.to_payload(include_runs=True)["runs"]) == 3


def test_zero_simulations():
    assert summarize_runs([]) == {"success_rate": 0.0, "simulations": 0}


def test_percentiles_pick_sorted_values_without_interpolation():
    runs = [_run(i + 1, float(value)) for i, value in enumerate([30, 0, 20, 10])]

    summary = summarize_runs(runs)

    assert summary["percentile_25"] == 10.0
    assert summary["percentile_75"] == 30.0
    assert summary["median_final_networth"] == 20.0
