"""REST backend for retirement plans and their projection scenarios."""

from __future__ import annotations

import datetime
import logging
import math
from typing import Any, Dict, List

import pandas as pd
from flask import Flask, jsonify, request

from retireplan.config import AppConfig, load_config_from_env
from retireplan.data_model import (
    FILING_STATUSES,
    STRATEGY_LABELS,
    WITHDRAWAL_PRIORITIES,
    AccountTableModel,
    ExpenseTableModel,
    OtherIncomeTableModel,
    PlanConfig,
    StrategyType,
    build_calculator_settings,
    plan_from_payload,
)
from retireplan.data_model.base import coerce_bool, coerce_float, coerce_int
from retireplan.engine.aggregate import aggregate_period, records_to_frame
from retireplan.engine.analysis import build_analysis
from retireplan.engine.compare import compare_strategies
from retireplan.engine.monte_carlo import run_monte_carlo
from retireplan.engine.simulator import ProjectionInputError, project_plan
from retireplan.engine.state import PlanState, ScenarioState
from retireplan.engine.storage import ProjectionStore
from retireplan.engine.tax import estimate_tax

ACCOUNT_MODEL = AccountTableModel()
EXPENSE_MODEL = ExpenseTableModel()
OTHER_INCOME_MODEL = OtherIncomeTableModel()

SETTINGS_DEFAULTS = {
    "growth_rate_before_retirement": 10.0,
    "growth_rate_during_retirement": 5.0,
    "inflation_rate": 4.0,
    "capital_gains_tax_rate": 20.0,
    "income_tax_rate_retirement": 25.0,
    "debt_interest_rate": 6.0,
    "ssa_start_age": 62,
    "rmd_age": 73,
    "enable_borrowing": False,
    "planner_ssa_income": True,
    "spouse_ssa_income": False,
    "strategy_type": StrategyType.FOUR_PERCENT.value,
    "withdrawal_priority": "default",
    "withdrawal_secondary_priority": "tax_optimization",
}


class PlanNotFound(LookupError):
    pass


def _is_nan(value: Any) -> bool:
    try:
        return not math.isfinite(value)
    except (TypeError, ValueError):
        return False


def _sanitize_records(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    clean_rows: List[Dict[str, Any]] = []
    for row in records:
        clean_rows.append({key: (None if _is_nan(value) else value) for key, value in row.items()})
    return clean_rows


def _extract_payload_value(payload: dict, *keys: str, default=None):
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def scenario_key(plan_name: str, scenario_name: str) -> str:
    return f"{plan_name}::{scenario_name}"


def create_app(config: AppConfig | None = None) -> Flask:
    config = config or load_config_from_env()
    app = Flask(__name__)
    app.config["RETIREPLAN"] = config
    app.logger.setLevel(config.log_level)
    logging.getLogger("retireplan").setLevel(config.log_level)

    plan_state = PlanState(config.plans_path)
    scenario_state = ScenarioState(config.scenarios_path)
    store = ProjectionStore(config.db_path)

    def _load_plan(plan_name: str) -> tuple[dict, PlanConfig]:
        payload = plan_state.get(plan_name)
        if not payload:
            raise PlanNotFound(plan_name)
        return payload, plan_from_payload(payload, config.default_life_expectancy)

    def _run_inputs(plan_name: str, payload: dict):
        """Resolves plan + settings for a request; settings come inline or from a saved scenario."""
        plan_payload, plan = _load_plan(plan_name)
        settings_row = payload.get("settings")
        scenario_name = _extract_payload_value(payload, "scenario", "scenarioName")
        if settings_row is None and scenario_name:
            settings_row = scenario_state.get(plan_name, str(scenario_name))
            if settings_row is None:
                raise PlanNotFound(f"{plan_name}/{scenario_name}")
        settings_row = {**SETTINGS_DEFAULTS, **(settings_row or {})}
        current_year = coerce_int(
            _extract_payload_value(settings_row, "current_year", "currentYear"),
            datetime.date.today().year,
        )
        annual_expenses = coerce_float(
            settings_row.get("annual_retirement_expenses"), plan.annual_retirement_expenses
        )
        settings = build_calculator_settings(
            settings_row,
            plan_payload,
            current_year,
            plan.retirement_age,
            plan.years_to_retirement(current_year),
            annual_expenses,
        )
        return plan, settings, settings_row

    @app.errorhandler(PlanNotFound)
    def handle_not_found(exc):
        return jsonify({"error": f"Not found: {exc}"}), 404

    @app.errorhandler(ProjectionInputError)
    def handle_projection_error(exc):
        app.logger.warning("Rejected projection inputs: %s", exc)
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(ValueError)
    @app.errorhandler(TypeError)
    def handle_bad_payload(exc):
        app.logger.warning("Bad request payload: %s", exc)
        return jsonify({"error": str(exc)}), 400

    @app.after_request
    def apply_cors_headers(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.get("/api/health")
    def healthcheck():
        return jsonify({"status": "ok"})

    @app.get("/api/schema")
    def get_schema():
        payload = {
            "planDefaults": {
                "name": "MyPlan",
                "birth_year": 1974,
                "retirement_age": 65,
                "life_expectancy": config.default_life_expectancy,
                "filing_status": None,
                "include_spouse": False,
            },
            "settingsDefaults": SETTINGS_DEFAULTS,
            "accounts": ACCOUNT_MODEL.to_payload(),
            "expenses": EXPENSE_MODEL.to_payload(),
            "otherIncome": OTHER_INCOME_MODEL.to_payload(),
            "strategyOptions": [{"label": label, "value": s.value} for s, label in STRATEGY_LABELS.items()],
            "priorityOptions": list(WITHDRAWAL_PRIORITIES),
            "filingStatusOptions": list(FILING_STATUSES),
            "freqOptions": [
                {"label": "Yearly", "value": "Y"},
                {"label": "5 Years", "value": "5Y"},
                {"label": "10 Years", "value": "10Y"},
                {"label": "Life Phase", "value": "phase"},
            ],
        }
        return jsonify(payload)

    @app.get("/api/plans")
    def list_saved_plans():
        return jsonify({"plans": plan_state.list_names()})

    @app.get("/api/plans/<plan_name>")
    def get_plan(plan_name: str):
        plan = plan_state.get(plan_name)
        if not plan:
            return jsonify({"error": "Plan not found."}), 404
        return jsonify({
            **plan,
            "scenarios": scenario_state.list_names(plan_name),
            "runs": store.list_scenarios(plan_name),
        })

    @app.post("/api/plans")
    def save_plan():
        payload = request.get_json(silent=True) or {}
        name = str(payload.get("name", "")).strip()
        if not name:
            return jsonify({"error": "Plan name is required."}), 400
        plan_from_payload(payload, config.default_life_expectancy)
        plan_state.save(name, payload)
        app.logger.info("Saved plan %s", name)
        return jsonify({
            "message": "Plan saved.",
            "plans": plan_state.list_names(),
            "plan": payload,
        })

    @app.delete("/api/plans/<plan_name>")
    def delete_plan(plan_name: str):
        plan_state.delete(plan_name)
        scenario_state.delete_plan(plan_name)
        store.delete_plan(plan_name)
        return jsonify({"message": "Plan deleted.", "plans": plan_state.list_names()})

    @app.post("/api/plans/<plan_name>/scenarios/<scenario_name>")
    def run_scenario(plan_name: str, scenario_name: str):
        payload = request.get_json(silent=True) or {}
        settings_payload = payload.get("settings", payload)
        plan, settings, settings_row = _run_inputs(plan_name, {"settings": settings_payload})
        records = project_plan(plan, settings)
        scenario_state.save(plan_name, scenario_name, settings_row)
        stored = store.replace_projections(
            plan_name, scenario_key(plan_name, scenario_name), records, settings.strategy_type.value
        )
        app.logger.info("Ran %s/%s with %s: %d years", plan_name, scenario_name, settings.strategy_type.value, stored)
        return jsonify({
            "plan": plan_name,
            "scenario": scenario_name,
            "rows": stored,
            "data": _sanitize_records([r.to_row() for r in records]),
        })

    @app.get("/api/plans/<plan_name>/scenarios/<scenario_name>/projections")
    def get_projections(plan_name: str, scenario_name: str):
        _, plan = _load_plan(plan_name)
        rows = store.list_projections(scenario_key(plan_name, scenario_name))
        if not rows:
            return jsonify({"error": "No projections stored for this scenario."}), 404
        freq = str(request.args.get("freq", "Y") or "Y")
        settings_row = scenario_state.get(plan_name, scenario_name) or {}
        rmd_age = coerce_int(settings_row.get("rmd_age"), 73)
        df = aggregate_period(pd.DataFrame(rows), freq=freq, retirement_age=plan.retirement_age, rmd_age=rmd_age)
        return jsonify({
            "plan": plan_name,
            "scenario": scenario_name,
            "freq": freq.upper(),
            "data": _sanitize_records(df.to_dict(orient="records")),
        })

    @app.post("/api/plans/<plan_name>/compare")
    def compare(plan_name: str):
        payload = request.get_json(silent=True) or {}
        plan, settings, _ = _run_inputs(plan_name, payload)
        results = compare_strategies(
            plan.household,
            plan.accounts,
            plan.expenses,
            plan.other_incomes,
            settings,
            max_workers=config.compare_workers,
            use_processes=config.compare_processes,
        )
        include_records = coerce_bool(payload.get("includeRecords", False))
        body = []
        for result in results:
            item = result.summary()
            if include_records:
                item["data"] = _sanitize_records(records_to_frame(result.records).to_dict(orient="records"))
            body.append(item)
        return jsonify({"plan": plan_name, "strategies": body})

    @app.post("/api/plans/<plan_name>/monte-carlo")
    def monte_carlo(plan_name: str):
        payload = request.get_json(silent=True) or {}
        plan, settings, _ = _run_inputs(plan_name, payload)
        simulations = coerce_int(
            _extract_payload_value(payload, "simulations", "numSimulations"), config.mc_simulations
        )
        outcome = run_monte_carlo(
            plan.household,
            plan.accounts,
            plan.expenses,
            plan.other_incomes,
            settings,
            num_simulations=simulations,
            seed=coerce_int(payload.get("seed")),
        )
        return jsonify({"plan": plan_name, **outcome.to_payload(coerce_bool(payload.get("includeRuns", False)))})

    @app.post("/api/plans/<plan_name>/analysis")
    def analysis(plan_name: str):
        payload = request.get_json(silent=True) or {}
        plan, settings, _ = _run_inputs(plan_name, payload)
        records = project_plan(plan, settings)
        return jsonify({"plan": plan_name, **build_analysis(records, settings, plan.accounts, plan.expenses)})

    @app.post("/api/tax/estimate")
    def tax_estimate():
        payload = request.get_json(silent=True) or {}
        result = estimate_tax(
            coerce_float(_extract_payload_value(payload, "ordinary_income", "ordinaryIncome", default=0.0)),
            coerce_float(_extract_payload_value(payload, "capital_gains", "capitalGains", default=0.0)),
            _extract_payload_value(payload, "filing_status", "filingStatus"),
        )
        return jsonify(result)

    return app


def main() -> None:
    config = load_config_from_env()
    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    create_app(config).run(debug=False, port=8000)


if __name__ == "__main__":
    main()
