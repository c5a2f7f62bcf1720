from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from coffee_health.fields import AGE_DECADE_GROUPS, AGE_GROUPS, PRIMARY_VARIABLE, VariableLike, age_decade_group, as_variable


KeyLike = Union[str, Callable[[pd.DataFrame], pd.Series]]


def to_float_array(values: Iterable[object]) -> np.ndarray:
    """Force-coerce to a float array; unparseable values become NaN."""
    series = values if isinstance(values, pd.Series) else pd.Series(list(values), dtype=object)
    return pd.to_numeric(series, errors="coerce").to_numpy(dtype=float, na_value=np.nan)


def finite_values(values: Iterable[object]) -> np.ndarray:
    arr = to_float_array(values)
    return arr[np.isfinite(arr)]


def resolve_keys(df: pd.DataFrame, key: KeyLike) -> pd.Series:
    """A grouping key is a column name or a callable returning a Series aligned with df."""
    if callable(key):
        return pd.Series(key(df), index=df.index)
    return df[key]


def quantile(sorted_values: Sequence[float], p: float) -> float:
    """R-7 quantile (linear interpolation between order statistics). NaN on empty input."""
    values = finite_values(sorted_values)
    if values.size == 0:
        return float("nan")
    p = min(1.0, max(0.0, float(p)))
    return float(np.quantile(np.sort(values), p, method="linear"))


def tertile_thresholds(
    data: Union[pd.DataFrame, Iterable[float]], tertiles: Tuple[float, float] = (0.33, 0.66)
) -> Tuple[float, float]:
    """Global coffee-intake cut points, computed over the full (unfiltered) dataset."""
    if isinstance(data, pd.DataFrame):
        data = data[PRIMARY_VARIABLE.value] if PRIMARY_VARIABLE.value in data.columns else []
    values = np.sort(finite_values(data))
    return quantile(values, tertiles[0]), quantile(values, tertiles[1])


@dataclass(frozen=True)
class BoxSummary:
    group: Any
    n: int
    q1: Optional[float] = None
    median: Optional[float] = None
    q3: Optional[float] = None
    iqr: Optional[float] = None
    whisker_min: Optional[float] = None
    whisker_max: Optional[float] = None


def box_stats(values: Iterable[object], group: Any = None) -> BoxSummary:
    """Five-number summary with Tukey whiskers clipped to the observed range."""
    vals = np.sort(finite_values(values))
    if vals.size == 0:
        return BoxSummary(group=group, n=0)
    q1 = quantile(vals, 0.25)
    median = quantile(vals, 0.5)
    q3 = quantile(vals, 0.75)
    iqr = q3 - q1
    return BoxSummary(
        group=group,
        n=int(vals.size),
        q1=q1,
        median=median,
        q3=q3,
        iqr=iqr,
        whisker_min=max(float(vals[0]), q1 - 1.5 * iqr),
        whisker_max=min(float(vals[-1]), q3 + 1.5 * iqr),
    )


def box_stats_by_group(df: pd.DataFrame, field: VariableLike, group_by: str, max_groups: int = 20) -> List[BoxSummary]:
    if df.empty or group_by not in df.columns:
        return []
    column = as_variable(field).value
    values = pd.to_numeric(df[column], errors="coerce")
    if group_by == "age_group":
        keys = df[group_by]
        present = set(keys.dropna().tolist())
        groups = [g for g in AGE_GROUPS if g in present]
    elif pd.api.types.is_numeric_dtype(df[group_by]):
        keys = pd.to_numeric(df[group_by], errors="coerce")
        groups = sorted(keys.dropna().unique().tolist())
    else:
        present = df[group_by].notna()
        keys = df[group_by].astype(str).where(present)
        groups = sorted(keys.dropna().unique().tolist())
    return [box_stats(values[keys == g], group=g) for g in groups[:max_groups]]


def group_means(
    df: pd.DataFrame, group_key: KeyLike, value_field: VariableLike, groups: Optional[Sequence[Any]] = None
) -> Dict[Any, float]:
    """Mean of value_field per group. Groups without finite values fall back to 0.0, not NaN."""
    column = as_variable(value_field).value
    if df.empty:
        return {g: 0.0 for g in (groups or [])}
    keys = resolve_keys(df, group_key)
    values = pd.to_numeric(df[column], errors="coerce").replace([np.inf, -np.inf], np.nan)
    means = values.groupby(keys).mean()
    if groups is None:
        groups = sorted(keys.dropna().unique().tolist())
    out: Dict[Any, float] = {}
    for g in groups:
        m = means.get(g, np.nan)
        out[g] = 0.0 if pd.isna(m) else float(m)
    return out


def country_means(df: pd.DataFrame, field: VariableLike = PRIMARY_VARIABLE) -> Dict[str, float]:
    """Mean per country for the choropleth colour scale; countries without finite values are omitted."""
    if df.empty or "Country" not in df.columns:
        return {}
    column = as_variable(field).value
    values = pd.to_numeric(df[column], errors="coerce").replace([np.inf, -np.inf], np.nan)
    means = values.groupby(df["Country"]).mean().dropna()
    return {str(k): float(v) for k, v in means.items()}


def histogram(values: Iterable[object], bins: int = 12) -> List[Dict[str, float]]:
    vals = finite_values(values)
    if vals.size == 0:
        return []
    counts, edges = np.histogram(vals, bins=max(1, int(bins)))
    return [
        {"x0": float(edges[i]), "x1": float(edges[i + 1]), "count": int(counts[i])}
        for i in range(len(counts))
    ]


def _decade_keys(df: pd.DataFrame) -> pd.Series:
    return df["Age"].map(age_decade_group)


def age_trend(
    df: pd.DataFrame, variable: VariableLike, occupation: Optional[str] = None, top_n: int = 6
) -> List[Dict[str, Any]]:
    """Mean of `variable` per ten-year age bin, one series per occupation.

    With an occupation selected a single series over that occupation is returned;
    otherwise one series for each of the `top_n` most frequent occupations.
    """
    column = as_variable(variable).value
    if df.empty:
        return []
    if occupation:
        subset = df[df["Occupation"] == occupation] if "Occupation" in df.columns else df
        means = group_means(subset, _decade_keys, column, groups=AGE_DECADE_GROUPS)
        return [{"key": occupation, "values": [{"age_group": ag, "value": means[ag]} for ag in AGE_DECADE_GROUPS]}]

    if "Occupation" not in df.columns:
        return []
    counts = df.groupby("Occupation", sort=False).size().sort_values(ascending=False, kind="stable")
    series = []
    for occ in counts.index[: max(0, int(top_n))]:
        subset = df[df["Occupation"] == occ]
        means = group_means(subset, _decade_keys, column, groups=AGE_DECADE_GROUPS)
        series.append({"key": str(occ), "values": [{"age_group": ag, "value": means[ag]} for ag in AGE_DECADE_GROUPS]})
    return series
