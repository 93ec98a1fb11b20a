# engine/storage.py
import json
import logging
import math
import os
import sqlite3
from typing import Any, Dict, Iterable, List, Mapping

from ..data_model import PROJECTION_COLUMNS, ProjectionDetail

logger = logging.getLogger(__name__)

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schema.sql")


def ensure_user_data_dir(path: str) -> None:
    folder = os.path.dirname(path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder, exist_ok=True)


def _sanitize_json_compat(value: Any):
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return value
    if isinstance(value, dict):
        return {key: _sanitize_json_compat(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_compat(item) for item in value]
    return value


def _load_json(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_text = f.read().strip()
            if not raw_text:
                return {}
            data = json.loads(raw_text)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Ignoring unreadable store %s: %s", path, exc)
        return {}
    return _sanitize_json_compat(data) if isinstance(data, dict) else {}


def _save_json(path: str, data: Dict[str, Any]) -> None:
    ensure_user_data_dir(path)
    tmp_path = f"{path}.tmp"
    clean = _sanitize_json_compat(data)
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(clean, f, allow_nan=False)
    os.replace(tmp_path, path)


def load_plans(path: str) -> Dict[str, dict]:
    return _load_json(path)


def save_plans(path: str, plans: Dict[str, dict]) -> None:
    _save_json(path, plans)


def load_scenario_settings(path: str) -> Dict[str, Dict[str, dict]]:
    """Scenario settings keyed by plan name, then scenario name."""
    return _load_json(path)


def save_scenario_settings(path: str, scenarios: Dict[str, Dict[str, dict]]) -> None:
    _save_json(path, scenarios)


class ProjectionStore:
    """SQLite ledger of projection rows keyed by (scenario_id, year)."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self.ensure_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_db(self) -> None:
        """Create the DB file and run the schema; the schema is idempotent."""
        ensure_user_data_dir(self.db_path)
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            sql = f.read()
        conn = self._connect()
        try:
            conn.executescript(sql)
            conn.commit()
        finally:
            conn.close()

    def replace_projections(
        self,
        plan_id: str,
        scenario_id: str,
        records: Iterable[ProjectionDetail | Mapping[str, Any]],
        strategy_type: str | None = None,
    ) -> int:
        """Deletes the scenario's rows and inserts `records` in one transaction."""
        rows = [r.to_row() if isinstance(r, ProjectionDetail) else dict(r) for r in records]
        columns = ["plan_id", "scenario_id", *PROJECTION_COLUMNS]
        placeholders = ",".join("?" for _ in columns)
        values = [
            (plan_id, scenario_id, *(_sanitize_json_compat(row.get(col)) for col in PROJECTION_COLUMNS))
            for row in rows
        ]
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM projections WHERE scenario_id = ?", (scenario_id,))
                conn.executemany(
                    f"INSERT INTO projections({','.join(columns)}) VALUES ({placeholders})",
                    values,
                )
                conn.execute(
                    "INSERT OR REPLACE INTO projection_runs(scenario_id, plan_id, strategy_type, row_count, updated_at) "
                    "VALUES (?,?,?,?,CURRENT_TIMESTAMP)",
                    (scenario_id, plan_id, strategy_type, len(values)),
                )
        finally:
            conn.close()
        logger.debug("Stored %d projection rows for %s/%s", len(values), plan_id, scenario_id)
        return len(values)

    def list_projections(self, scenario_id: str) -> List[Dict[str, Any]]:
        conn = self._connect()
        try:
            cur = conn.execute(
                f"SELECT {','.join(PROJECTION_COLUMNS)} FROM projections WHERE scenario_id = ? ORDER BY year",
                (scenario_id,),
            )
            return [dict(row) for row in cur.fetchall()]
        finally:
            conn.close()

    def list_scenarios(self, plan_id: str) -> List[Dict[str, Any]]:
        conn = self._connect()
        try:
            cur = conn.execute(
                "SELECT scenario_id, strategy_type, row_count, updated_at FROM projection_runs "
                "WHERE plan_id = ? ORDER BY scenario_id",
                (plan_id,),
            )
            return [dict(row) for row in cur.fetchall()]
        finally:
            conn.close()

    def count_rows(self, scenario_id: str | None = None) -> int:
        sql = "SELECT COUNT(*) FROM projections"
        params: tuple = ()
        if scenario_id is not None:
            sql += " WHERE scenario_id = ?"
            params = (scenario_id,)
        conn = self._connect()
        try:
            return int(conn.execute(sql, params).fetchone()[0])
        finally:
            conn.close()

    def delete_scenario(self, scenario_id: str) -> int:
        conn = self._connect()
        try:
            with conn:
                deleted = conn.execute("DELETE FROM projections WHERE scenario_id = ?", (scenario_id,)).rowcount
                conn.execute("DELETE FROM projection_runs WHERE scenario_id = ?", (scenario_id,))
        finally:
            conn.close()
        return deleted

    def delete_plan(self, plan_id: str) -> int:
        conn = self._connect()
        try:
            with conn:
                deleted = conn.execute("DELETE FROM projections WHERE plan_id = ?", (plan_id,)).rowcount
                conn.execute("DELETE FROM projection_runs WHERE plan_id = ?", (plan_id,))
        finally:
            conn.close()
        return deleted
