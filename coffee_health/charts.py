from __future__ import annotations

from typing import Any, Dict, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def heatmap_chart(cells: pd.DataFrame, rows: Sequence[str], cols: Sequence[str], title: str) -> alt.Chart:
    return (
        alt.Chart(cells, title=title)
        .mark_rect()
        .encode(
            x=alt.X("col:O", title="Age Group", sort=list(cols)),
            y=alt.Y("row:N", title="Country", sort=list(rows)),
            color=alt.Color("corr:Q", title="r", scale=alt.Scale(domain=[-1, 1], scheme="redblue", reverse=True)),
            tooltip=[
                alt.Tooltip("row:N", title="Country"),
                alt.Tooltip("col:O", title="Age Group"),
                alt.Tooltip("corr:Q", title="r", format=".3f"),
                alt.Tooltip("n:Q", title="n"),
            ],
        )
        .properties(height=max(120, 28 * len(rows)))
    )


def scatter_chart(points: pd.DataFrame, slope: float, intercept: float, y_title: str, fitted: bool) -> alt.LayerChart:
    dots = (
        alt.Chart(points)
        .mark_point(filled=True, opacity=0.7)
        .encode(
            x=alt.X("x:Q", title="Coffee Intake", scale=alt.Scale(nice=True)),
            y=alt.Y("y:Q", title=y_title, scale=alt.Scale(nice=True)),
            color=alt.Color("Country:N", title="Country"),
            shape=alt.Shape("is_outlier:N", title="Outlier", scale=alt.Scale(domain=[False, True], range=["circle", "diamond"])),
            size=alt.condition(alt.datum.is_outlier, alt.value(140), alt.value(28)),
            tooltip=["ID", "Country", alt.Tooltip("x:Q", title="Coffee"), alt.Tooltip("y:Q", title=y_title)],
        )
    )
    if not fitted or points.empty:
        return alt.layer(dots)
    x_min, x_max = float(points["x"].min()), float(points["x"].max())
    line_df = pd.DataFrame({"x": [x_min, x_max], "y": [slope * x_min + intercept, slope * x_max + intercept]})
    line = alt.Chart(line_df).mark_line(color="#444", strokeDash=[4, 3], opacity=0.7).encode(x="x:Q", y="y:Q")
    return alt.layer(dots, line)


def box_chart(stats: pd.DataFrame, group_title: str, value_title: str) -> alt.LayerChart:
    base = alt.Chart(stats).encode(x=alt.X("group:O", title=group_title))
    whiskers = base.mark_rule().encode(y=alt.Y("whisker_min:Q", title=value_title), y2="whisker_max:Q")
    boxes = base.mark_bar(size=20, color="#9ecae1", stroke="#333").encode(
        y="q1:Q",
        y2="q3:Q",
        tooltip=[
            alt.Tooltip("group:O", title=group_title),
            alt.Tooltip("n:Q", title="n"),
            alt.Tooltip("q1:Q", format=".2f"),
            alt.Tooltip("median:Q", format=".2f"),
            alt.Tooltip("q3:Q", format=".2f"),
        ],
    )
    medians = base.mark_tick(color="#111", size=20).encode(y="median:Q")
    return alt.layer(whiskers, boxes, medians)


def trend_chart(long_df: pd.DataFrame, order: Sequence[str], variable: str) -> alt.Chart:
    hover = alt.selection_point(fields=["key"], on="mouseover", empty="all")
    return (
        alt.Chart(long_df, title=f"{variable} Trend by Age Group")
        .mark_line(point={"filled": True})
        .encode(
            x=alt.X("age_group:O", title="Age Group", sort=list(order)),
            y=alt.Y("value:Q", title=variable, scale=alt.Scale(nice=True, zero=False)),
            color=alt.Color("key:N", title="Occupation", scale=alt.Scale(scheme="tableau10")),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.2)),
            tooltip=["key", "age_group", alt.Tooltip("value:Q", format=".2f")],
        )
        .add_params(hover)
    )
