from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from coffee_health.correlation import variable_correlation_matrix
from coffee_health.fields import NETWORK_VARIABLES, PRIMARY_VARIABLE, VariableLike, as_variable

NODE_FLOOR = 0.01


@dataclass(frozen=True)
class NetworkNode:
    id: str
    abs_correlation_with_primary: float
    n: int


@dataclass(frozen=True)
class NetworkEdge:
    source: str
    target: str
    corr: float
    weight: float
    sign: int
    n: int


def build_network(
    df: pd.DataFrame,
    variables: Sequence[VariableLike] = NETWORK_VARIABLES,
    primary: VariableLike = PRIMARY_VARIABLE,
    edge_threshold: float = 0.05,
    min_samples: int = 6,
) -> Tuple[List[NetworkNode], List[NetworkEdge]]:
    """Correlation graph over `variables`.

    Node size is |r| against the primary variable (1.0 for the primary itself, 0.01 when the
    sample is too small, degenerate or exactly uncorrelated). Edges keep pairs with
    |r| > edge_threshold; a missing correlation weighs 0 and never produces an edge.
    """
    names = [as_variable(v).value for v in variables]
    primary_name = as_variable(primary).value
    cells = variable_correlation_matrix(df, names, min_samples=min_samples)
    lookup = {(c.row, c.col): c for c in cells}

    nodes: List[NetworkNode] = []
    for name in names:
        if name == primary_name:
            nodes.append(NetworkNode(id=name, abs_correlation_with_primary=1.0, n=lookup[(name, name)].n))
            continue
        cell = lookup.get((primary_name, name))
        if cell is None:
            cell = variable_correlation_matrix(df, [primary_name, name], min_samples=min_samples)[1]
        value = abs(cell.corr) if cell.corr else NODE_FLOOR
        nodes.append(NetworkNode(id=name, abs_correlation_with_primary=float(value), n=cell.n))

    edges: List[NetworkEdge] = []
    for i, v1 in enumerate(names):
        for v2 in names[i + 1:]:
            cell = lookup[(v1, v2)]
            corr: Optional[float] = cell.corr
            weight = abs(corr) if corr is not None else 0.0
            if corr is None or weight <= edge_threshold:
                continue
            edges.append(NetworkEdge(source=v1, target=v2, corr=float(corr), weight=float(weight), sign=int(np.sign(corr)), n=cell.n))
    return nodes, edges
