from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

import pandas as pd

from coffee_health.fields import ALL_SENTINEL


@dataclass(frozen=True)
class AnalysisSettings:
    min_samples: int = 6
    outlier_multiple: float = 3.0
    edge_threshold: float = 0.05
    tertiles: Tuple[float, float] = (0.33, 0.66)
    max_box_groups: int = 20
    top_occupations: int = 6
    histogram_bins: int = 12


@dataclass(frozen=True)
class FilterSpec:
    countries: Tuple[str, ...] = ()
    gender: Optional[str] = None
    occupation: Optional[str] = None
    age_groups: Tuple[str, ...] = ()
    settings: AnalysisSettings = field(default_factory=AnalysisSettings)


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = [values]
    out = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s != ALL_SENTINEL:
            out.append(s)
    return tuple(out)


def _as_choice(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    if not s or s == ALL_SENTINEL:
        return None
    return s


def _as_number(value: object, default, cast=float, lo=None, hi=None):
    try:
        out = cast(value)
    except Exception:
        return default
    if out != out:
        return default
    if lo is not None:
        out = max(lo, out)
    if hi is not None:
        out = min(hi, out)
    return out


def normalize_settings(raw: Optional[dict]) -> AnalysisSettings:
    t = raw or {}
    defaults = AnalysisSettings()
    tertiles = t.get("tertiles") or defaults.tertiles
    try:
        low, high = (float(tertiles[0]), float(tertiles[1]))
    except Exception:
        low, high = defaults.tertiles
    if not 0.0 <= low <= high <= 1.0:
        low, high = defaults.tertiles
    return AnalysisSettings(
        min_samples=_as_number(t.get("min_samples", defaults.min_samples), defaults.min_samples, int, lo=1),
        outlier_multiple=_as_number(t.get("outlier_multiple", defaults.outlier_multiple), defaults.outlier_multiple, lo=0.0),
        edge_threshold=_as_number(t.get("edge_threshold", defaults.edge_threshold), defaults.edge_threshold, lo=0.0, hi=1.0),
        tertiles=(low, high),
        max_box_groups=_as_number(t.get("max_box_groups", defaults.max_box_groups), defaults.max_box_groups, int, lo=1, hi=200),
        top_occupations=_as_number(t.get("top_occupations", defaults.top_occupations), defaults.top_occupations, int, lo=1, hi=50),
        histogram_bins=_as_number(t.get("histogram_bins", defaults.histogram_bins), defaults.histogram_bins, int, lo=1, hi=100),
    )


def normalize_filters(raw: dict) -> FilterSpec:
    """Build a FilterSpec from UI/API state. Blank values and "All" mean no restriction."""
    return FilterSpec(
        countries=_as_str_tuple(raw.get("countries")),
        gender=_as_choice(raw.get("gender")),
        occupation=_as_choice(raw.get("occupation")),
        age_groups=_as_str_tuple(raw.get("age_groups")),
        settings=normalize_settings(raw.get("settings")),
    )


def apply_filters(df: pd.DataFrame, spec: FilterSpec) -> pd.DataFrame:
    """Stable conjunction of the active filters; empty selections are permissive."""
    if df.empty:
        return df
    mask = pd.Series(True, index=df.index)
    if spec.countries and "Country" in df.columns:
        mask &= df["Country"].isin(spec.countries)
    if spec.gender and "Gender" in df.columns:
        mask &= df["Gender"] == spec.gender
    if spec.occupation and "Occupation" in df.columns:
        mask &= df["Occupation"] == spec.occupation
    if spec.age_groups and "age_group" in df.columns:
        mask &= df["age_group"].isin(spec.age_groups)
    return df[mask]
