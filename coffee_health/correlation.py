from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from coffee_health.aggregates import KeyLike, resolve_keys, to_float_array
from coffee_health.fields import VariableLike, as_variable


@dataclass(frozen=True)
class CorrelationCell:
    row: Any
    col: Any
    corr: Optional[float]
    n: int


def paired_finite(xs: Sequence[object], ys: Sequence[object]) -> Tuple[np.ndarray, np.ndarray]:
    """Keep only the positions where both x and y are finite numbers."""
    x = to_float_array(xs)
    y = to_float_array(ys)
    if x.shape != y.shape:
        raise ValueError(f"paired inputs differ in length: {x.size} != {y.size}")
    keep = np.isfinite(x) & np.isfinite(y)
    return x[keep], y[keep]


def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson product-moment correlation. NaN for empty input or zero variance on either side."""
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"pearson inputs differ in length: {x.size} != {y.size}")
    if x.size == 0 or np.all(x == x[0]) or np.all(y == y[0]):
        return float("nan")
    dx = x - x.mean()
    dy = y - y.mean()
    num = float(np.sum(dx * dy))
    denom = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denom == 0:
        return float("nan")
    return num / denom


def _cell_corr(x: np.ndarray, y: np.ndarray, min_samples: int) -> Optional[float]:
    if x.size < min_samples:
        return None
    r = pearson(x, y)
    return None if np.isnan(r) else r


def correlation_matrix(
    df: pd.DataFrame,
    row_key: KeyLike,
    col_key: KeyLike,
    x_field: VariableLike,
    y_field: VariableLike,
    min_samples: int = 6,
    row_keys: Optional[Sequence[Any]] = None,
    col_keys: Optional[Sequence[Any]] = None,
) -> List[CorrelationCell]:
    """Correlation of x_field vs y_field for every (row, col) combination, row-major.

    Cells with fewer than `min_samples` finite pairs carry corr=None; their count is still reported.
    """
    x_col = as_variable(x_field).value
    y_col = as_variable(y_field).value
    if df.empty:
        rows_k = pd.Series(dtype=object)
        cols_k = pd.Series(dtype=object)
    else:
        rows_k = resolve_keys(df, row_key)
        cols_k = resolve_keys(df, col_key)
    if row_keys is None:
        row_keys = sorted(rows_k.dropna().unique().tolist())
    if col_keys is None:
        col_keys = sorted(cols_k.dropna().unique().tolist())

    cells: List[CorrelationCell] = []
    for r in row_keys:
        row_mask = rows_k == r
        for c in col_keys:
            sub = df[row_mask & (cols_k == c)] if not df.empty else df
            if sub.empty:
                cells.append(CorrelationCell(row=r, col=c, corr=None, n=0))
                continue
            x, y = paired_finite(sub[x_col], sub[y_col])
            cells.append(CorrelationCell(row=r, col=c, corr=_cell_corr(x, y, min_samples), n=int(x.size)))
    return cells


def variable_correlation_matrix(df: pd.DataFrame, variables: Sequence[VariableLike], min_samples: int = 6) -> List[CorrelationCell]:
    """Symmetric variable-by-variable matrix. Only the upper triangle is computed; the diagonal is 1."""
    names = [as_variable(v).value for v in variables]
    upper = {}
    for i, v1 in enumerate(names):
        for v2 in names[i + 1:]:
            if df.empty:
                upper[(v1, v2)] = (None, 0)
                continue
            x, y = paired_finite(df[v1], df[v2])
            upper[(v1, v2)] = (_cell_corr(x, y, min_samples), int(x.size))

    cells: List[CorrelationCell] = []
    for i, v1 in enumerate(names):
        for j, v2 in enumerate(names):
            if i == j:
                n = int(np.isfinite(to_float_array(df[v1])).sum()) if not df.empty else 0
                cells.append(CorrelationCell(row=v1, col=v2, corr=1.0, n=n))
            else:
                corr, n = upper[(v1, v2)] if i < j else upper[(v2, v1)]
                cells.append(CorrelationCell(row=v1, col=v2, corr=corr, n=n))
    return cells
