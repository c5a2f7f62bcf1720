"""Unit tests for Pearson correlation and correlation matrices."""

import math

import numpy as np
import pandas as pd
import pytest

from coffee_health.correlation import correlation_matrix, paired_finite, pearson, variable_correlation_matrix
from coffee_health.fields import AGE_GROUPS, NETWORK_VARIABLES, Variable


def test_pearson_perfect_line():
    assert pearson([1, 2, 3, 4], [2, 4, 6, 8]) == pytest.approx(1.0)
    assert pearson([1, 2, 3, 4], [8, 6, 4, 2]) == pytest.approx(-1.0)


def test_pearson_is_symmetric_and_self_correlation_is_one():
    rng = np.random.RandomState(3)
    x = rng.normal(size=50)
    y = 0.5 * x + rng.normal(size=50)
    assert pearson(x, y) == pearson(y, x)
    assert pearson(x, x) == pytest.approx(1.0)


def test_pearson_degenerate_input_is_nan():
    assert math.isnan(pearson([], []))
    assert math.isnan(pearson([1, 1, 1], [1, 2, 3]))
    assert math.isnan(pearson([1, 2, 3], [5, 5, 5]))


@pytest.mark.parametrize("constant", [0.1, 0.7, 1.1, 2.3, 3.3, 24.3, 72.9])
@pytest.mark.parametrize("n", [6, 7, 10, 13, 100])
def test_pearson_float_constant_column_is_nan(constant, n):
    assert math.isnan(pearson([constant] * n, list(range(n))))
    assert math.isnan(pearson(list(range(n)), [constant] * n))


def test_constant_float_cell_has_no_correlation():
    df = pd.DataFrame({"Country": ["A"] * 8, "age_group": ["<30"] * 8, "Coffee_Intake": np.arange(8.0), "BMI": [24.3] * 8})
    (cell,) = correlation_matrix(df, "Country", "age_group", "Coffee_Intake", "BMI")
    assert cell.n == 8
    assert cell.corr is None


def test_pearson_length_mismatch_raises():
    with pytest.raises(ValueError):
        pearson([1, 2], [1, 2, 3])


def test_paired_finite_drops_pairs_independently():
    x, y = paired_finite([1, float("nan"), 3, 4, "bad"], [1, 2, None, 4, 5])
    assert x.tolist() == [1.0, 4.0]
    assert y.tolist() == [1.0, 4.0]


def _cell_frame():
    rows = []
    for i in range(6):
        rows.append({"Country": "A", "age_group": "<30", "Coffee_Intake": float(i), "Sleep_Hours": 8.0 - i})
    for i in range(5):
        rows.append({"Country": "B", "age_group": "<30", "Coffee_Intake": float(i), "Sleep_Hours": float(i)})
    rows.append({"Country": "B", "age_group": "<30", "Coffee_Intake": 9.0, "Sleep_Hours": float("nan")})
    return pd.DataFrame(rows)


def test_correlation_matrix_cells_and_min_samples():
    df = _cell_frame()
    cells = correlation_matrix(df, "Country", "age_group", Variable.COFFEE_INTAKE, Variable.SLEEP_HOURS, row_keys=["A", "B", "C"], col_keys=list(AGE_GROUPS))
    assert len(cells) == 3 * len(AGE_GROUPS)
    by_key = {(c.row, c.col): c for c in cells}
    assert by_key[("A", "<30")].corr == pytest.approx(-1.0)
    assert by_key[("A", "<30")].n == 6
    # five finite pairs: the count is reported but the correlation is withheld
    assert by_key[("B", "<30")].corr is None
    assert by_key[("B", "<30")].n == 5
    assert by_key[("C", "60+")].n == 0
    assert all(c.corr is None for c in cells if c.n < 6)


def test_correlation_matrix_default_keys_and_callable_key():
    df = _cell_frame()
    cells = correlation_matrix(df, lambda d: d["Country"].str.lower(), "age_group", "Coffee_Intake", "Sleep_Hours", min_samples=3)
    assert [(c.row, c.col) for c in cells] == [("a", "<30"), ("b", "<30")]
    assert cells[1].corr == pytest.approx(1.0)


def test_correlation_matrix_unknown_field_raises():
    with pytest.raises(ValueError):
        correlation_matrix(_cell_frame(), "Country", "age_group", "Coffee_Intake", "Shoe_Size")


def test_variable_matrix_is_symmetric_with_unit_diagonal(records):
    cells = variable_correlation_matrix(records, NETWORK_VARIABLES)
    k = len(NETWORK_VARIABLES)
    assert len(cells) == k * k
    lookup = {(c.row, c.col): c for c in cells}
    for v in NETWORK_VARIABLES:
        assert lookup[(v.value, v.value)].corr == 1.0
    for a in NETWORK_VARIABLES:
        for b in NETWORK_VARIABLES:
            assert lookup[(a.value, b.value)].corr == lookup[(b.value, a.value)].corr
    assert lookup[("Coffee_Intake", "Caffeine_mg")].corr > 0.9
    assert lookup[("Coffee_Intake", "Sleep_Hours")].corr < -0.5
