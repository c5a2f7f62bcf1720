from __future__ import annotations

import logging
import numbers
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from coffee_health.aggregates import tertile_thresholds
from coffee_health.fields import (
    CATEGORICAL_COLUMNS,
    COFFEE_LEVEL_UNKNOWN,
    NUMERIC_COLUMNS,
    PRIMARY_VARIABLE,
    RECORD_COLUMNS,
    STRESS_LEVEL_MAP,
    Variable,
    age_group,
)
from coffee_health.filters import FilterSpec, apply_filters, normalize_filters

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1]
DATA_FILE = "synthetic_coffee_health_10000.csv"

RawRecords = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]


def coerce_number(value: object) -> float:
    """Force-coerce a raw value to float; anything unparseable becomes NaN."""
    if value is None:
        return float("nan")
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        value = value.strip()
    try:
        out = pd.to_numeric(value, errors="coerce")
    except (TypeError, ValueError):
        return float("nan")
    if out is None or pd.isna(out):
        return float("nan")
    return float(out)


def stress_to_ordinal(value: object) -> float:
    """Numeric stress passes through; Low/Medium/High map to 1/2/3; anything else is NaN."""
    if value is None or isinstance(value, bool):
        return float("nan")
    if isinstance(value, numbers.Number):
        return float(value)
    s = str(value).strip()
    if s in STRESS_LEVEL_MAP:
        return float(STRESS_LEVEL_MAP[s])
    return coerce_number(s)


def _clean_category(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    s = str(value).strip()
    return s or None


def _clean_id(value: object) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_record(raw: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Normalize one raw record; returns None when coffee intake is not a finite number."""
    coffee = coerce_number(raw.get(PRIMARY_VARIABLE.value))
    if not np.isfinite(coffee):
        return None
    record: Dict[str, Any] = {"ID": _clean_id(raw.get("ID"))}
    for col in NUMERIC_COLUMNS:
        if col == Variable.STRESS_LEVEL.value:
            record[col] = stress_to_ordinal(raw.get(col))
        else:
            record[col] = coerce_number(raw.get(col))
    for col in CATEGORICAL_COLUMNS:
        record[col] = _clean_category(raw.get(col))
    record["age_group"] = age_group(record["Age"])
    return {k: record[k] for k in RECORD_COLUMNS + ["age_group"]}


def normalize(raw_records: RawRecords) -> pd.DataFrame:
    """Normalize raw records into a new frame, keeping input order and dropping rejected rows."""
    if isinstance(raw_records, pd.DataFrame):
        rows = raw_records.to_dict(orient="records")
    else:
        rows = [dict(r) for r in raw_records]
    normalized = [rec for rec in (normalize_record(r) for r in rows) if rec is not None]
    df = pd.DataFrame(normalized, columns=RECORD_COLUMNS + ["age_group"])
    df[NUMERIC_COLUMNS] = df[NUMERIC_COLUMNS].astype(float)
    for col in ["ID"] + CATEGORICAL_COLUMNS + ["age_group"]:
        df[col] = df[col].astype(object)
    return df


def coffee_level(value: object, thresholds: Tuple[float, float]) -> str:
    v = coerce_number(value)
    if np.isnan(v):
        return COFFEE_LEVEL_UNKNOWN
    if v <= thresholds[0]:
        return "Low"
    if v <= thresholds[1]:
        return "Medium"
    return "High"


def assign_coffee_levels(
    df: pd.DataFrame, thresholds: Optional[Tuple[float, float]] = None, tertiles: Tuple[float, float] = (0.33, 0.66)
) -> pd.DataFrame:
    """Return a copy of df with `coffee_level`; thresholds default to the tertiles of df itself."""
    if thresholds is None:
        thresholds = tertile_thresholds(df, tertiles)
    out = df.copy()
    if out.empty:
        out["coffee_level"] = pd.Series(dtype=object)
        return out
    out["coffee_level"] = out[PRIMARY_VARIABLE.value].map(lambda v: coffee_level(v, thresholds)).astype(object)
    return out


def default_countries(df: pd.DataFrame, n: int = 6) -> List[str]:
    """The `n` most frequent countries, ties in order of first appearance."""
    if df.empty or "Country" not in df.columns:
        return []
    counts = df.groupby("Country", sort=False).size().sort_values(ascending=False, kind="stable")
    return [str(c) for c in counts.index[:n]]


def unique_sorted(df: pd.DataFrame, col: str) -> List[str]:
    if df.empty or col not in df.columns:
        return []
    return sorted(str(x) for x in df[col].dropna().unique().tolist())


# ---------------- Loaders ----------------
def get_source_file(path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    candidate = Path(path) if path is not None else DATA_DIR / DATA_FILE
    return candidate if candidate.is_file() else None


def file_signature(path: Path) -> Tuple[str, float]:
    return (str(path), path.stat().st_mtime)


def load_raw_records(path: Union[str, Path]) -> pd.DataFrame:
    return pd.read_csv(path)


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(file_sig: Tuple[str, float], tertiles: Tuple[float, float]) -> Dict[str, object]:
    path = Path(file_sig[0])
    raw = load_raw_records(path)
    records = normalize(raw)
    thresholds = tertile_thresholds(records, tertiles)
    records = assign_coffee_levels(records, thresholds)
    rejected = int(len(raw) - len(records))
    if rejected:
        logger.warning("Dropped %d of %d records without a finite Coffee_Intake", rejected, len(raw))
    logger.info("Loaded %d records from %s", len(records), path.name)
    return {
        "files": [path.name],
        "records": records,
        "raw_rows": int(len(raw)),
        "rejected_rows": rejected,
        "thresholds": thresholds,
        "countries": unique_sorted(records, "Country"),
        "occupations": unique_sorted(records, "Occupation"),
        "default_countries": default_countries(records),
    }


def load_dashboard_data(path: Optional[Union[str, Path]] = None, tertiles: Tuple[float, float] = (0.33, 0.66)) -> Dict[str, object]:
    source = get_source_file(path)
    if source is None:
        logger.warning("No data file found at %s", path or DATA_DIR / DATA_FILE)
        return {"files": [], "records": pd.DataFrame(columns=RECORD_COLUMNS + ["age_group", "coffee_level"]), "countries": [], "occupations": []}
    return _load_dashboard_data_cached(file_signature(source), tuple(tertiles))


def prepare_context(filters: Union[dict, FilterSpec], data_ctx: Dict[str, object]) -> Dict[str, object]:
    """Apply the filter spec once and hand the page functions both the full and filtered frames."""
    records: pd.DataFrame = data_ctx.get("records", pd.DataFrame())
    filt = filters if isinstance(filters, FilterSpec) else normalize_filters(filters)
    thresholds = data_ctx.get("thresholds")
    if thresholds is None and not records.empty:
        thresholds = tertile_thresholds(records, filt.settings.tertiles)
    if not records.empty and "coffee_level" not in records.columns:
        records = assign_coffee_levels(records, thresholds)
    filtered = apply_filters(records, filt)
    return {
        "filters": filt,
        "records": records,
        "filtered": filtered,
        "thresholds": thresholds,
        "countries": data_ctx.get("countries") or unique_sorted(records, "Country"),
        "occupations": data_ctx.get("occupations") or unique_sorted(records, "Occupation"),
        "raw_rows": data_ctx.get("raw_rows", len(records)),
        "rejected_rows": data_ctx.get("rejected_rows", 0),
        "files": data_ctx.get("files", []),
    }