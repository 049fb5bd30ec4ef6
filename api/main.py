from __future__ import annotations

import asyncio
import logging
import math
from typing import Dict, Literal, Optional

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import ChartPointModel, MetaResourcesResponse, ResourceModel, SortStateModel, SummaryResponse
from webforms.charts import build_comparison_chart, to_vega_spec
from webforms.config import load_config
from webforms.dashboard import WebformDashboard
from webforms.fields import IDENTIFIER, parse_sort_key
from webforms.sorting import TABLE_FIELDS, SortDirection, SortState, rows_to_frame

app = FastAPI(title="Webforms Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_dashboard: Optional[WebformDashboard] = None
_dashboard_lock = asyncio.Lock()


async def get_dashboard() -> WebformDashboard:
    """Process-wide dashboard; the first request triggers the initial load cycle."""
    global _dashboard
    async with _dashboard_lock:
        if _dashboard is None:
            _dashboard = WebformDashboard.from_config(load_config())
        if not _dashboard.loaded:
            await _dashboard.reload()
    return _dashboard


def _json(data: object, status_code: int = 200) -> JSONResponse:
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
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _resolve_sort(key: Optional[str], direction: Optional[str]) -> SortState:
    """Sort state for one request; the shared dashboard state is left untouched."""
    if not key:
        return SortState()
    return SortState(key=parse_sort_key(key), direction=SortDirection(direction or "asc"))


def _next_directions(state: SortState) -> Dict[str, str]:
    keys = [IDENTIFIER] + [f.value for f in TABLE_FIELDS]
    return {k: state.toggle(k).direction.value for k in keys}


@app.get("/meta/resources")
async def meta_resources(dashboard: WebformDashboard = Depends(get_dashboard)):
    try:
        payload = MetaResourcesResponse(
            resources=[ResourceModel(identifier=d.identifier, location=d.location) for d in dashboard.catalog]
        )
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("meta_resources failed")
        return _error(exc)


@app.get("/meta/summary")
async def meta_summary(dashboard: WebformDashboard = Depends(get_dashboard)):
    try:
        return _json(SummaryResponse(**dashboard.summary()).model_dump())
    except Exception as exc:
        logger.exception("meta_summary failed")
        return _error(exc)


@app.get("/webforms")
async def webforms(
    dashboard: WebformDashboard = Depends(get_dashboard),
    key: Optional[str] = Query(default=None),
    direction: Optional[Literal["asc", "desc"]] = Query(default=None),
):
    try:
        state = _resolve_sort(key, direction)
    except ValueError as exc:
        return _error(exc, status_code=400)
    try:
        frame = rows_to_frame(dashboard.sorted_rows(state))
        sort = SortStateModel(key=state.key_name, direction=state.direction.value)
        return _json(
            {"sort": sort.model_dump(), "next": _next_directions(state), "rows": frame.to_dict(orient="records")}
        )
    except Exception as exc:
        logger.exception("webforms failed")
        return _error(exc)


@app.get("/reports")
async def reports(dashboard: WebformDashboard = Depends(get_dashboard)):
    try:
        data = dashboard.chart()
        payload = data.to_dict()
        payload["points"] = [ChartPointModel(**p).model_dump() for p in payload["points"]]
        payload["chart"] = None if data.is_empty else to_vega_spec(build_comparison_chart(data))
        return _json(payload)
    except Exception as exc:
        logger.exception("reports failed")
        return _error(exc)


@app.post("/reload")
async def reload(dashboard: WebformDashboard = Depends(get_dashboard)):
    try:
        await dashboard.reload()
        return _json(SummaryResponse(**dashboard.summary()).model_dump())
    except Exception as exc:
        logger.exception("reload failed")
        return _error(exc)


@app.get("/export/webforms")
async def export_webforms(
    dashboard: WebformDashboard = Depends(get_dashboard),
    key: Optional[str] = Query(default=None),
    direction: Optional[Literal["asc", "desc"]] = Query(default=None),
):
    try:
        state = _resolve_sort(key, direction)
    except ValueError as exc:
        return _error(exc, status_code=400)
    frame = rows_to_frame(dashboard.sorted_rows(state))
    csv_bytes = frame.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=webforms.csv"},
    )
