from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from coffee_health.fields import NETWORK_VARIABLES, PRIMARY_VARIABLE
from coffee_health.filters import FilterSpec
from coffee_health.network import build_network


def compute_network(filters: FilterSpec, ctx: Dict[str, Any], *, edge_threshold: Optional[float] = None) -> Dict[str, Any]:
    """Nodes and weighted edges for the correlation network; layout is left to the renderer."""
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    threshold = filters.settings.edge_threshold if edge_threshold is None else max(0.0, float(edge_threshold))
    nodes, edges = build_network(
        df,
        NETWORK_VARIABLES,
        primary=PRIMARY_VARIABLE,
        edge_threshold=threshold,
        min_samples=filters.settings.min_samples,
    )
    max_abs = max((n.abs_correlation_with_primary for n in nodes if n.id != PRIMARY_VARIABLE.value), default=0.0)
    return {
        "filters": asdict(filters),
        "primary": PRIMARY_VARIABLE.value,
        "edge_threshold": threshold,
        "nodes": [asdict(n) for n in nodes],
        "edges": [asdict(e) for e in edges],
        "summary": {
            "records": int(len(df)),
            "edges": len(edges),
            "positive_edges": sum(1 for e in edges if e.sign > 0),
            "negative_edges": sum(1 for e in edges if e.sign < 0),
            "max_abs_correlation_with_primary": max_abs,
        },
    }
