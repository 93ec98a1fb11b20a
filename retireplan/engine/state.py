# engine/state.py
from typing import Dict

from .storage import load_plans, load_scenario_settings, save_plans, save_scenario_settings


class ScenarioState:
    """Named scenario settings per plan, persisted as one JSON document."""

    def __init__(self, storage_path: str = "user_data/scenarios.json"):
        self.storage_path = storage_path
        self.scenarios: Dict[str, Dict[str, dict]] = load_scenario_settings(storage_path)

    def list_names(self, plan_name: str):
        return sorted(self.scenarios.get(plan_name, {}).keys())

    def get(self, plan_name: str, scenario_name: str) -> dict | None:
        return self.scenarios.get(plan_name, {}).get(scenario_name)

    def save(self, plan_name: str, scenario_name: str, settings: dict) -> None:
        self.scenarios.setdefault(plan_name, {})[scenario_name] = settings
        self._save()

    def delete(self, plan_name: str, scenario_name: str) -> None:
        if scenario_name in self.scenarios.get(plan_name, {}):
            del self.scenarios[plan_name][scenario_name]
            self._save()

    def delete_plan(self, plan_name: str) -> None:
        if plan_name in self.scenarios:
            del self.scenarios[plan_name]
            self._save()

    def _save(self) -> None:
        save_scenario_settings(self.storage_path, self.scenarios)


class PlanState:
    def __init__(self, storage_path: str = "user_data/plans.json"):
        self.storage_path = storage_path
        self.plans: Dict[str, dict] = load_plans(storage_path)

    def list_names(self):
        return sorted(self.plans.keys())

    def get(self, name: str) -> dict | None:
        return self.plans.get(name)

    def save(self, name: str, payload: dict) -> None:
        self.plans[name] = payload
        self._save()

    def delete(self, name: str) -> None:
        if name in self.plans:
            del self.plans[name]
            self._save()

    def _save(self) -> None:
        save_plans(self.storage_path, self.plans)
