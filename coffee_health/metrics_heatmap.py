from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from coffee_health.charts import heatmap_chart, to_vega_spec
from coffee_health.correlation import correlation_matrix
from coffee_health.fields import AGE_GROUPS, PRIMARY_VARIABLE, Variable, VariableLike, as_variable
from coffee_health.filters import FilterSpec


def compute_heatmap(filters: FilterSpec, ctx: Dict[str, Any], *, outcome: VariableLike = Variable.SLEEP_HOURS) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    outcome_var = as_variable(outcome)
    rows = sorted(filters.countries) if filters.countries else list(ctx.get("countries") or [])
    cols = list(AGE_GROUPS)
    title = f"{outcome_var.value} vs {PRIMARY_VARIABLE.value}: correlation heatmap"

    cells = correlation_matrix(
        df,
        "Country",
        "age_group",
        PRIMARY_VARIABLE,
        outcome_var,
        min_samples=filters.settings.min_samples,
        row_keys=rows,
        col_keys=cols,
    )
    cell_records = [asdict(c) for c in cells]

    charts: Dict[str, Any] = {}
    if cell_records:
        charts["heatmap"] = to_vega_spec(heatmap_chart(pd.DataFrame(cell_records), rows, cols, title))

    return {
        "filters": asdict(filters),
        "outcome": outcome_var.value,
        "title": title,
        "rows": rows,
        "cols": cols,
        "cells": cell_records,
        "summary": {
            "records": int(len(df)),
            "cells": len(cells),
            "cells_with_corr": sum(1 for c in cells if c.corr is not None),
            "min_samples": filters.settings.min_samples,
        },
        "charts": charts,
    }
