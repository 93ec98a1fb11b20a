"""Environment-driven settings for the backend.

Env vars:
  RETIREPLAN_DATA_DIR                 root for plan/scenario JSON and the SQLite ledger
  RETIREPLAN_DB_PATH                  projection store (default <data_dir>/projections.sqlite)
  RETIREPLAN_LOG_LEVEL                logging level name (default INFO)
  RETIREPLAN_MC_SIMULATIONS           default Monte Carlo run count (default 1000)
  RETIREPLAN_COMPARE_WORKERS          strategy comparison workers, 0 = CPU count
  RETIREPLAN_COMPARE_PROCESSES        "1"/"true" to compare in processes, otherwise threads
  RETIREPLAN_DEFAULT_LIFE_EXPECTANCY  used when a plan omits it (default 90)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class AppConfig:
    data_dir: str
    db_path: str
    log_level: str = "INFO"
    mc_simulations: int = 1000
    compare_workers: int = 0
    compare_processes: bool = True
    default_life_expectancy: int = 90

    @property
    def plans_path(self) -> str:
        return os.path.join(self.data_dir, "plans.json")

    @property
    def scenarios_path(self) -> str:
        return os.path.join(self.data_dir, "scenarios.json")


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc


def load_config_from_env(env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env
    data_dir = env.get("RETIREPLAN_DATA_DIR") or os.path.join(BASE_DIR, "user_data")
    return AppConfig(
        data_dir=data_dir,
        db_path=env.get("RETIREPLAN_DB_PATH") or os.path.join(data_dir, "projections.sqlite"),
        log_level=str(env.get("RETIREPLAN_LOG_LEVEL", "INFO")).upper(),
        mc_simulations=_env_int(env, "RETIREPLAN_MC_SIMULATIONS", 1000),
        compare_workers=_env_int(env, "RETIREPLAN_COMPARE_WORKERS", 0),
        compare_processes=str(env.get("RETIREPLAN_COMPARE_PROCESSES", "true")).lower() in TRUE_VALUES,
        default_life_expectancy=_env_int(env, "RETIREPLAN_DEFAULT_LIFE_EXPECTANCY", 90),
    )
