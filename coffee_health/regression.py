from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np
import pandas as pd

from coffee_health.correlation import paired_finite
from coffee_health.fields import VariableLike, as_variable

MIN_FIT_POINTS = 3


@dataclass(frozen=True)
class LinearFit:
    slope: float
    intercept: float
    n: int = 0

    @property
    def fitted(self) -> bool:
        return self.n >= MIN_FIT_POINTS


@dataclass(frozen=True)
class OutlierReport:
    fit: LinearFit
    residual_sd: float
    points: pd.DataFrame = field(default_factory=pd.DataFrame)

    @property
    def outlier_count(self) -> int:
        if self.points.empty:
            return 0
        return int(self.points["is_outlier"].sum())


def fit_linear(xs: Sequence[float], ys: Sequence[float]) -> LinearFit:
    """Ordinary least squares y = slope * x + intercept."""
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.size < MIN_FIT_POINTS:
        return LinearFit(slope=0.0, intercept=0.0, n=int(x.size))
    mean_x = x.mean()
    mean_y = y.mean()
    num = float(np.sum((x - mean_x) * (y - mean_y)))
    den = float(np.sum((x - mean_x) ** 2))
    slope = 0.0 if den == 0 else num / den
    return LinearFit(slope=slope, intercept=float(mean_y - slope * mean_x), n=int(x.size))


def residuals(xs: Sequence[float], ys: Sequence[float], slope: float, intercept: float) -> np.ndarray:
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    return y - (slope * x + intercept)


def residual_deviation(res: Sequence[float]) -> float:
    """Sample standard deviation (n - 1); 0 for fewer than two residuals."""
    r = np.asarray(res, dtype=float)
    if r.size < 2:
        return 0.0
    return float(np.std(r, ddof=1))


def flag_outliers(res: Sequence[float], threshold_multiple: float = 3.0) -> List[bool]:
    """A residual is an outlier when |r| exceeds threshold_multiple * max(sd, 1)."""
    r = np.asarray(res, dtype=float)
    if r.size == 0:
        return []
    bound = threshold_multiple * max(residual_deviation(r), 1.0)
    return (np.abs(r) > bound).tolist()


def detect_outliers(
    df: pd.DataFrame, x_field: VariableLike, y_field: VariableLike, threshold_multiple: float = 3.0
) -> OutlierReport:
    """Fit y on x over the finite pairs of df and flag residual outliers.

    `points` holds one row per finite pair (ID, Country, x, y, residual, is_outlier).
    With two or fewer pairs there is no fit and nothing is flagged.
    """
    x_col = as_variable(x_field).value
    y_col = as_variable(y_field).value
    if df.empty:
        return OutlierReport(fit=LinearFit(0.0, 0.0, 0), residual_sd=0.0)

    x_all = pd.to_numeric(df[x_col], errors="coerce")
    y_all = pd.to_numeric(df[y_col], errors="coerce")
    keep = np.isfinite(x_all.to_numpy(dtype=float, na_value=np.nan)) & np.isfinite(y_all.to_numpy(dtype=float, na_value=np.nan))
    sub = df.loc[keep]
    x, y = paired_finite(sub[x_col], sub[y_col])

    fit = fit_linear(x, y)
    cols = [c for c in ["ID", "Country"] if c in sub.columns]
    points = sub[cols].copy()
    points["x"] = x
    points["y"] = y
    if fit.fitted:
        res = residuals(x, y, fit.slope, fit.intercept)
        sd = residual_deviation(res)
        points["residual"] = res
        points["is_outlier"] = flag_outliers(res, threshold_multiple)
    else:
        sd = 0.0
        points["residual"] = np.nan
        points["is_outlier"] = False
    return OutlierReport(fit=fit, residual_sd=sd, points=points.reset_index(drop=True))
