from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from coffee_health.aggregates import box_stats_by_group, country_means, histogram
from coffee_health.charts import box_chart, scatter_chart, to_vega_spec
from coffee_health.fields import ALL_SENTINEL, COFFEE_LEVELS, PRIMARY_VARIABLE, Variable, VariableLike, as_variable
from coffee_health.filters import FilterSpec
from coffee_health.regression import detect_outliers

DEMOGRAPHICS = (
    "Gender",
    "Age",
    "age_group",
    "Country",
    "Occupation",
    "Sleep_Quality",
    "Health_Issues",
    "Smoking",
    "Alcohol_Consumption",
)

BOX_FIELD = Variable.CAFFEINE_MG


def compute_distribution(
    filters: FilterSpec,
    ctx: Dict[str, Any],
    *,
    outcome: VariableLike = Variable.SLEEP_HOURS,
    demographic: str = "Gender",
    coffee_level: str = ALL_SENTINEL,
    selected_country: Optional[str] = None,
) -> Dict[str, Any]:
    """Country means, per-country outcome histograms, coffee-vs-outcome scatter with outliers, and a caffeine box plot.

    `coffee_level` restricts only the histograms; `selected_country` restricts the scatter and the box plot.
    """
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    outcome_var = as_variable(outcome)
    if demographic not in DEMOGRAPHICS:
        raise ValueError(f"Unsupported demographic: {demographic}")
    level = coffee_level if coffee_level in COFFEE_LEVELS else ALL_SENTINEL
    settings = filters.settings

    means = country_means(df, PRIMARY_VARIABLE)
    domain = [min(means.values()), max(means.values())] if means else []

    hist_src = df
    if level != ALL_SENTINEL and not df.empty and "coffee_level" in df.columns:
        hist_src = df[df["coffee_level"] == level]
    distributions: Dict[str, Any] = {}
    if not hist_src.empty:
        for country, grp in hist_src.groupby("Country", sort=True):
            bins = histogram(grp[outcome_var.value], bins=settings.histogram_bins)
            distributions[str(country)] = {"n": int(sum(b["count"] for b in bins)), "bins": bins}

    focus = df
    if selected_country and not df.empty:
        focus = df[df["Country"] == selected_country]

    report = detect_outliers(focus, PRIMARY_VARIABLE, outcome_var, threshold_multiple=settings.outlier_multiple)
    boxes = box_stats_by_group(focus, BOX_FIELD, demographic, max_groups=settings.max_box_groups)
    box_records = [asdict(b) for b in boxes]

    charts: Dict[str, Any] = {}
    if not report.points.empty:
        charts["scatter"] = to_vega_spec(
            scatter_chart(report.points, report.fit.slope, report.fit.intercept, outcome_var.value, report.fit.fitted)
        )
    drawable = [b for b in box_records if b["n"] > 0]
    if drawable:
        charts["boxplot"] = to_vega_spec(box_chart(pd.DataFrame(drawable), demographic, BOX_FIELD.value))

    return {
        "filters": asdict(filters),
        "outcome": outcome_var.value,
        "coffee_level": level,
        "selected_country": selected_country,
        "thresholds": list(ctx.get("thresholds") or []),
        "country_means": means,
        "country_means_domain": domain,
        "distributions": distributions,
        "scatter": {
            "fit": {"slope": report.fit.slope, "intercept": report.fit.intercept, "n": report.fit.n, "fitted": report.fit.fitted},
            "residual_sd": report.residual_sd,
            "outlier_count": report.outlier_count,
            "points": report.points.to_dict(orient="records"),
        },
        "boxplot": {"field": BOX_FIELD.value, "group_by": demographic, "groups": box_records},
        "charts": charts,
    }
