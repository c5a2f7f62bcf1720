from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from coffee_health.fields import COFFEE_LEVELS, COFFEE_LEVEL_UNKNOWN, NUMERIC_COLUMNS
from coffee_health.filters import FilterSpec


def compute_debug(filters: FilterSpec, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    payload = {
        "filters": asdict(filters),
        "files": list(ctx.get("files", []) or []),
        "row_counts": {
            "raw_rows": int(ctx.get("raw_rows", len(records)) or 0),
            "records": int(len(records)),
            "rejected_rows": int(ctx.get("rejected_rows", 0) or 0),
            "filtered_rows": int(len(filtered)),
        },
        "thresholds": list(ctx.get("thresholds") or []),
        "missing_values": {},
        "coffee_levels": {},
        "age_groups": {},
    }
    if records.empty:
        return payload

    payload["missing_values"] = {
        col: int(pd.to_numeric(records[col], errors="coerce").isna().sum()) for col in NUMERIC_COLUMNS if col in records.columns
    }
    if "coffee_level" in records.columns:
        counts = records["coffee_level"].value_counts()
        payload["coffee_levels"] = {lvl: int(counts.get(lvl, 0)) for lvl in list(COFFEE_LEVELS) + [COFFEE_LEVEL_UNKNOWN]}
    if "age_group" in filtered.columns and not filtered.empty:
        payload["age_groups"] = {str(k): int(v) for k, v in filtered["age_group"].value_counts(dropna=True).sort_index().items()}
    return payload
