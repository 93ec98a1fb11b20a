import pandas as pd
import pytest

from retireplan.engine.aggregate import aggregate_period, records_to_frame
from retireplan.engine.simulator import project


@pytest.fixture
def frame(household, accounts, expenses, settings):
    return records_to_frame(project(household, accounts, expenses, [], settings))


def test_yearly_is_passthrough(frame):
    out = aggregate_period(frame, "Y")

    assert len(out) == 41
    assert out["Period"].iloc[0] == "2024"


def test_five_year_buckets_sum_flows_and_keep_end_balances(frame):
    out = aggregate_period(frame, "5Y")

    assert len(out) == 9
    assert out["Period"].iloc[0] == "2024-2028"
    assert out["Period"].iloc[-1] == "2064-2064"
    assert out["tax"].sum() == pytest.approx(frame["tax"].sum())
    assert out["networth"].iloc[0] == pytest.approx(frame["networth"].iloc[4])
    assert out["years"].tolist() == [5] * 8 + [1]


def test_ten_year_buckets(frame):
    out = aggregate_period(frame, "10y")

    assert out["Period"].tolist()[:2] == ["2024-2033", "2034-2043"]
    assert out["start_year"].iloc[1] == 2034


def test_phase_buckets(frame):
    out = aggregate_period(frame, "phase", retirement_age=65, rmd_age=73)

    assert out["Period"].tolist() == ["Accumulation", "Early Retirement", "RMD Years"]
    assert out["years"].tolist() == [15, 8, 18]


def test_phase_requires_retirement_age(frame):
    with pytest.raises(ValueError):
        aggregate_period(frame, "phase")


def test_unknown_frequency_rejected(frame):
    with pytest.raises(ValueError):
        aggregate_period(frame, "Q")


def test_empty_frame_is_returned_unchanged():
    empty = pd.DataFrame()

    assert aggregate_period(empty, "5Y").empty


def test_scenario_column(household, accounts, expenses, settings):
    df = records_to_frame(project(household, accounts, expenses, [], settings), scenario="base")

    assert df.columns[0] == "scenario"
    assert set(df["scenario"]) == {"base"}
