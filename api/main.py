from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Literal, Optional

import numpy as np
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import DashboardFiltersModel, MetaOptionsResponse, MultiSelectFiltersModel
from core.data import filter_options, load_vendors, prepare_context
from core.filters import DashboardFilters, MultiSelectFilters, Thresholds, normalize_filters, normalize_multi_filters
from core.metrics_material import compute_material
from core.metrics_post_award import compute_post_award
from core.metrics_pre_award import compute_pre_award
from core.table import SORT_KEYS, sort_vendors, table_rows
from core.vendors import phase_frame

CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

app = FastAPI(title="Vendor KPI Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: DashboardFiltersModel) -> DashboardFilters:
    return normalize_filters(model.model_dump())


def _multi_filters_from_model(model: MultiSelectFiltersModel) -> MultiSelectFilters:
    return normalize_multi_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for numpy objects and non-finite floats."""

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
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/options", response_model=MetaOptionsResponse)
def meta_options():
    try:
        return _json(filter_options(load_vendors()))
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.get("/meta/thresholds")
def meta_thresholds():
    return _json(asdict(Thresholds()))


@app.post("/pre-award")
def pre_award(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_vendors())
        return _json(compute_pre_award(f, ctx))
    except Exception as exc:
        logger.exception("pre_award failed")
        return _error(exc)


@app.post("/post-award")
def post_award(filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_vendors())
        return _json(compute_post_award(f, ctx))
    except Exception as exc:
        logger.exception("post_award failed")
        return _error(exc)


@app.post("/material")
def material(
    filters: MultiSelectFiltersModel,
    view: Literal["overview", "table"] = Query(default="overview"),
    selected_vendor_id: Optional[str] = Query(default=None),
    sort_key: Optional[str] = Query(default=None),
    direction: Optional[Literal["asc", "desc"]] = Query(default=None),
):
    if sort_key and sort_key not in SORT_KEYS["material"]:
        return _error(KeyError(f"Unknown sort key {sort_key!r} for material"), status_code=400)
    try:
        f = _multi_filters_from_model(filters)
        ctx = prepare_context(f, load_vendors())
        return _json(
            compute_material(
                f,
                ctx,
                view=view,
                selected_vendor_id=selected_vendor_id or None,
                sort_key=sort_key,
                direction=direction,
            )
        )
    except Exception as exc:
        logger.exception("material failed")
        return _error(exc)


@app.post("/table/{phase}")
def table(
    phase: str,
    filters: DashboardFiltersModel,
    sort_key: Optional[str] = Query(default=None),
    direction: Optional[Literal["asc", "desc"]] = Query(default=None),
):
    if phase not in SORT_KEYS:
        return _error(KeyError(f"Unknown phase {phase!r}"), status_code=404)
    if sort_key and sort_key not in SORT_KEYS[phase]:
        return _error(KeyError(f"Unknown sort key {sort_key!r} for {phase}"), status_code=400)
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_vendors())
        ordered = sort_vendors(ctx["vendors_in_view"], phase, sort_key, direction)
        return _json({"filters": asdict(f), "phase": phase, "rows": table_rows(ordered, phase, f.thresholds)})
    except Exception as exc:
        logger.exception("table failed")
        return _error(exc)


@app.post("/export/{phase}")
def export_phase(phase: str, filters: DashboardFiltersModel):
    if phase not in SORT_KEYS:
        return _error(KeyError(f"Unknown phase {phase!r}"), status_code=404)
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_vendors())
        export_df = phase_frame(ctx["vendors_in_view"], phase)
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
        filename = f"{phase}.csv"
        return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
    except Exception as exc:
        logger.exception("export failed")
        return _error(exc)
