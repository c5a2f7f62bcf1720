"""Unit tests for quantiles, box summaries, group means and trend series."""

import math

import numpy as np
import pandas as pd
import pytest

from coffee_health.aggregates import (
    age_trend,
    box_stats,
    box_stats_by_group,
    country_means,
    group_means,
    histogram,
    quantile,
    tertile_thresholds,
)
from coffee_health.fields import AGE_DECADE_GROUPS, Variable


def test_quantile_endpoints_are_min_and_max():
    values = sorted([3.0, 1.0, 7.5, 2.0])
    assert quantile(values, 0) == 1.0
    assert quantile(values, 1) == 7.5


def test_quantile_r7_interpolation_and_empty():
    assert quantile([1, 2, 3, 4], 0.5) == pytest.approx(2.5)
    assert quantile([10, 20], 0.25) == pytest.approx(12.5)
    assert math.isnan(quantile([], 0.5))


def test_box_stats_scenario():
    s = box_stats(list(range(1, 11)))
    assert s.n == 10
    assert s.q1 == pytest.approx(3.25)
    assert s.median == pytest.approx(5.5)
    assert s.q3 == pytest.approx(7.75)
    assert s.whisker_min == 1.0
    assert s.whisker_max == 10.0


def test_box_stats_caps_whiskers_at_tukey_fences():
    s = box_stats([1, 2, 3, 4, 5, 6, 7, 8, 100])
    assert s.q1 <= s.median <= s.q3
    assert s.whisker_max == pytest.approx(s.q3 + 1.5 * s.iqr)
    assert s.whisker_max < 100
    assert s.whisker_min <= s.q1


def test_box_stats_empty_group_has_no_box():
    s = box_stats([float("nan"), None], group="x")
    assert s.n == 0
    assert s.group == "x"
    assert s.q1 is None and s.median is None and s.whisker_max is None


def test_box_stats_by_group_orders_groups(records):
    by_gender = box_stats_by_group(records, Variable.CAFFEINE_MG, "Gender")
    assert [b.group for b in by_gender] == ["Female", "Male"]
    by_age = box_stats_by_group(records, Variable.CAFFEINE_MG, "Age", max_groups=5)
    ages = [b.group for b in by_age]
    assert ages == sorted(ages) and len(ages) == 5
    by_bin = box_stats_by_group(records, Variable.CAFFEINE_MG, "age_group")
    assert [b.group for b in by_bin] == ["<30", "30-44", "45-59", "60+"]
    assert all(b.whisker_min <= b.q1 <= b.median <= b.q3 <= b.whisker_max for b in by_bin)


def test_tertile_thresholds_use_all_values():
    q33, q66 = tertile_thresholds(list(range(1, 11)))
    assert q33 == pytest.approx(3.97)
    assert q66 == pytest.approx(6.94)


def test_tertile_thresholds_from_frame(records):
    q33, q66 = tertile_thresholds(records)
    assert q33 < q66
    assert q33 == pytest.approx(quantile(np.sort(records["Coffee_Intake"].to_numpy()), 0.33))


def test_group_means_falls_back_to_zero():
    df = pd.DataFrame({"Occupation": ["a", "a", "b", "c"], "BMI": [20.0, 22.0, float("nan"), 30.0]})
    means = group_means(df, "Occupation", Variable.BMI, groups=["a", "b", "c", "d"])
    assert means == {"a": 21.0, "b": 0.0, "c": 30.0, "d": 0.0}


def test_country_means_omits_empty_countries():
    df = pd.DataFrame({"Country": ["X", "X", "Y"], "Coffee_Intake": [1.0, 3.0, float("nan")]})
    assert country_means(df) == {"X": 2.0}


def test_histogram_counts_every_value():
    bins = histogram([1, 2, 2, 3, 4, 5, float("nan")], bins=4)
    assert len(bins) == 4
    assert sum(b["count"] for b in bins) == 6
    assert bins[0]["x0"] == 1.0 and bins[-1]["x1"] == 5.0
    assert histogram([]) == []


def test_age_trend_top_occupations(records):
    series = age_trend(records, Variable.SLEEP_HOURS, top_n=2)
    assert len(series) == 2
    for s in series:
        assert [p["age_group"] for p in s["values"]] == list(AGE_DECADE_GROUPS)


def test_age_trend_single_occupation_uses_zero_fallback():
    df = pd.DataFrame({"Age": [25, 26, 41], "Occupation": ["x", "x", "x"], "Sleep_Hours": [7.0, 8.0, 6.0]})
    series = age_trend(df, "Sleep_Hours", occupation="x")
    assert len(series) == 1
    values = {p["age_group"]: p["value"] for p in series[0]["values"]}
    assert values["20-29"] == pytest.approx(7.5)
    assert values["40-49"] == pytest.approx(6.0)
    assert values["<20"] == 0.0
    assert values["70+"] == 0.0
