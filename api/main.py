from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import FilterSpecModel
from coffee_health.data import load_dashboard_data, prepare_context
from coffee_health.fields import ALL_SENTINEL, NETWORK_VARIABLES, OUTCOMES, Variable
from coffee_health.filters import FilterSpec, normalize_filters
from coffee_health.metrics_debug import compute_debug
from coffee_health.metrics_distribution import compute_distribution
from coffee_health.metrics_heatmap import compute_heatmap
from coffee_health.metrics_network import compute_network
from coffee_health.metrics_trend import compute_trend


app = FastAPI(title="Coffee & Health Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

# None means the default CSV next to the package (see coffee_health.data.DATA_FILE).
DATA_PATH: Optional[Union[str, Path]] = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class NoDataError(Exception):
    pass


def _filters_from_model(model: FilterSpecModel) -> FilterSpec:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception, where: str) -> JSONResponse:
    if isinstance(exc, NoDataError):
        return JSONResponse(status_code=404, content={"error": "No data available", "type": type(exc).__name__})
    if isinstance(exc, ValueError):
        return JSONResponse(status_code=400, content={"error": str(exc), "type": type(exc).__name__})
    logger.exception("%s failed", where)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _context(filters: FilterSpec) -> dict:
    data_ctx = load_dashboard_data(DATA_PATH, tertiles=filters.settings.tertiles)
    if not data_ctx.get("files"):
        raise NoDataError(str(DATA_PATH or "default data file"))
    return prepare_context(filters, data_ctx)


@app.get("/meta/countries")
def meta_countries():
    try:
        data_ctx = load_dashboard_data(DATA_PATH)
        return _json({"countries": data_ctx.get("countries", []), "default_countries": data_ctx.get("default_countries", [])})
    except Exception as exc:
        return _error(exc, "meta_countries")


@app.get("/meta/occupations")
def meta_occupations():
    try:
        data_ctx = load_dashboard_data(DATA_PATH)
        return _json({"occupations": [ALL_SENTINEL] + list(data_ctx.get("occupations", []))})
    except Exception as exc:
        return _error(exc, "meta_occupations")


@app.get("/meta/variables")
def meta_variables():
    return _json(
        {
            "outcomes": [v.value for v in OUTCOMES],
            "network": [v.value for v in NETWORK_VARIABLES],
            "all": [v.value for v in Variable],
        }
    )


@app.post("/heatmap")
def heatmap(filters: FilterSpecModel, outcome: Variable = Query(default=Variable.SLEEP_HOURS)):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f)
        return _json(compute_heatmap(f, ctx, outcome=outcome))
    except Exception as exc:
        return _error(exc, "heatmap")


@app.post("/distribution")
def distribution(
    filters: FilterSpecModel,
    outcome: Variable = Query(default=Variable.SLEEP_HOURS),
    demographic: str = Query(default="Gender"),
    coffee_level: str = Query(default=ALL_SENTINEL),
    selected_country: Optional[str] = Query(default=None),
):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f)
        payload = compute_distribution(
            f,
            ctx,
            outcome=outcome,
            demographic=demographic,
            coffee_level=coffee_level,
            selected_country=selected_country or None,
        )
        return _json(payload)
    except Exception as exc:
        return _error(exc, "distribution")


@app.post("/network")
def network(filters: FilterSpecModel, edge_threshold: Optional[float] = Query(default=None, ge=0.0, le=1.0)):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f)
        return _json(compute_network(f, ctx, edge_threshold=edge_threshold))
    except Exception as exc:
        return _error(exc, "network")


@app.post("/trend")
def trend(filters: FilterSpecModel, variable: Variable = Query(default=Variable.SLEEP_HOURS)):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f)
        return _json(compute_trend(f, ctx, variable=variable))
    except Exception as exc:
        return _error(exc, "trend")


@app.post("/debug")
def debug(filters: FilterSpecModel):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f)
        return _json(compute_debug(f, ctx))
    except Exception as exc:
        return _error(exc, "debug")


@app.post("/export/{page}")
def export_page(page: str, filters: FilterSpecModel):
    try:
        f = _filters_from_model(filters)
        ctx = _context(f)
    except Exception as exc:
        return _error(exc, "export")

    filename = f"{page}.csv"
    if page in {"filtered", "heatmap", "network", "trend"}:
        export_df = ctx.get("filtered")
    elif page == "records":
        export_df = ctx.get("records")
    else:
        export_df = pd.DataFrame()

    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
