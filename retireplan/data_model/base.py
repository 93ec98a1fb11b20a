from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, List

import pandas as pd


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Parses loosely-typed numeric cells ("", None, "1,200") into floats."""
    if value is None:
        return default
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").strip()
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def coerce_int(value: Any, default: int | None = None) -> int | None:
    number = coerce_float(value, float("nan"))
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(value, float) and value != value:
        return False
    return bool(value)


@dataclass
class ColumnDefinition:
    """Lightweight schema descriptor used by table editors."""

    field: str
    label: str
    kind: str = "text"  # text | number | select | bool
    default: Any = ""
    options: List[str] | None = None
    min_value: float | None = None
    step: float | None = None
    format: str | None = None
    help: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "label": self.label,
            "kind": self.kind,
            "default": self.default,
            "options": self.options or [],
            "min": self.min_value,
            "step": self.step,
            "format": self.format,
            "help": self.help,
        }


@dataclass
class TableModel:
    """Container for a table schema plus default rows."""

    name: str
    columns: List[ColumnDefinition]
    default_rows: List[dict[str, Any]] = field(default_factory=list)

    def create_default_df(self) -> pd.DataFrame:
        if self.default_rows:
            return pd.DataFrame(self.default_rows)
        seed = {col.field: col.default for col in self.columns}
        return pd.DataFrame([seed])

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": [col.to_payload() for col in self.columns],
            "defaults": self.create_default_df().to_dict("records"),
        }
