from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from coffee_health.aggregates import age_trend
from coffee_health.charts import to_vega_spec, trend_chart
from coffee_health.fields import AGE_DECADE_GROUPS, Variable, VariableLike, as_variable
from coffee_health.filters import FilterSpec


def compute_trend(filters: FilterSpec, ctx: Dict[str, Any], *, variable: VariableLike = Variable.SLEEP_HOURS) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    var = as_variable(variable)
    series = age_trend(df, var, occupation=filters.occupation, top_n=filters.settings.top_occupations)

    charts: Dict[str, Any] = {}
    if series:
        long_df = pd.DataFrame(
            [{"key": s["key"], "age_group": p["age_group"], "value": p["value"]} for s in series for p in s["values"]]
        )
        charts["trend"] = to_vega_spec(trend_chart(long_df, AGE_DECADE_GROUPS, var.value))

    return {
        "filters": asdict(filters),
        "variable": var.value,
        "age_groups": list(AGE_DECADE_GROUPS),
        "series": series,
        "charts": charts,
    }
