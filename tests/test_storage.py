import json
import math

from retireplan.app import _sanitize_records
from retireplan.data_model import ProjectionDetail
from retireplan.engine.state import PlanState, ScenarioState
from retireplan.engine.storage import ProjectionStore, _load_json, _sanitize_json_compat, save_plans


def test_sanitize_json_compat_replaces_special_numbers():
    payload = {
        "float": math.nan,
        "list": [1, float("inf"), -float("inf")],
        "nested": {"value": math.nan},
    }

    clean = _sanitize_json_compat(payload)

    assert clean == {
        "float": None,
        "list": [1, None, None],
        "nested": {"value": None},
    }


def test_save_plans_persists_sanitized_values(tmp_path):
    path = tmp_path / "plans.json"
    data = {"Plan": {"value": math.nan, "items": [1, float("inf")]}}

    save_plans(str(path), data)

    with path.open("r", encoding="utf-8") as handle:
        stored = json.load(handle)

    assert stored == {"Plan": {"value": None, "items": [1, None]}}
    assert not (tmp_path / "plans.json.tmp").exists()


def test_corrupt_store_loads_as_empty(tmp_path):
    path = tmp_path / "plans.json"
    path.write_text("{not json", encoding="utf-8")

    assert _load_json(str(path)) == {}


def test_sanitize_records_used_for_api_payloads():
    rows = [{"value": float("nan"), "other": 5}]

    clean = _sanitize_records(rows)

    assert clean == [{"value": None, "other": 5}]


def test_replace_projections_is_idempotent(tmp_path):
    store = ProjectionStore(str(tmp_path / "db" / "projections.sqlite"))
    records = [ProjectionDetail(year=2024 + i, age=50 + i, networth=1000.0 * i) for i in range(5)]

    store.replace_projections("Plan", "Plan::base", records, "four_percent")
    first_rows = store.list_projections("Plan::base")
    stored = store.replace_projections("Plan", "Plan::base", records, "four_percent")

    assert stored == 5
    assert store.count_rows("Plan::base") == 5
    rows = store.list_projections("Plan::base")
    assert rows == first_rows
    assert [row["year"] for row in rows] == [2024, 2025, 2026, 2027, 2028]
    assert rows[3]["networth"] == 3000.0
    assert store.list_scenarios("Plan")[0]["row_count"] == 5


def test_replace_keeps_other_scenarios(tmp_path):
    store = ProjectionStore(str(tmp_path / "projections.sqlite"))
    store.replace_projections("Plan", "Plan::a", [ProjectionDetail(year=2024, age=50)])
    store.replace_projections("Plan", "Plan::b", [ProjectionDetail(year=2024, age=50)])

    store.replace_projections("Plan", "Plan::a", [])

    assert store.count_rows("Plan::a") == 0
    assert store.count_rows("Plan::b") == 1


def test_delete_plan_removes_rows(tmp_path):
    store = ProjectionStore(str(tmp_path / "projections.sqlite"))
    store.replace_projections("Plan", "Plan::a", [ProjectionDetail(year=2024, age=50)])

    assert store.delete_plan("Plan") == 1
    assert store.count_rows() == 0
    assert store.list_scenarios("Plan") == []


def test_plan_and_scenario_state_round_trip(tmp_path):
    plans = PlanState(str(tmp_path / "plans.json"))
    scenarios = ScenarioState(str(tmp_path / "scenarios.json"))

    plans.save("Plan", {"name": "Plan", "birth_year": 1974})
    scenarios.save("Plan", "base", {"inflation_rate": 3.0})

    assert PlanState(str(tmp_path / "plans.json")).list_names() == ["Plan"]
    assert ScenarioState(str(tmp_path / "scenarios.json")).get("Plan", "base") == {"inflation_rate": 3.0}

    scenarios.delete_plan("Plan")
    assert ScenarioState(str(tmp_path / "scenarios.json")).list_names("Plan") == []
