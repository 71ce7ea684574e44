"""
Dashboard endpoints — summary + charts, single chart views, filtered listing.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from app.config import TREND_METRICS
from app.data.store import DataStore
from app.data.schemas import FilterSpec
from app.api.dependencies import get_store, parse_filter
from app.analytics.common import sanitize_for_json
from app.analytics.dashboard import chart_series, dashboard_summary, resolve_view

router = APIRouter(prefix="/api", tags=["dashboard"])
logger = logging.getLogger(__name__)


def _safe_json(data) -> JSONResponse:
    return JSONResponse(content=sanitize_for_json(data))


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _metrics(metrics: Optional[list[str]]) -> tuple[str, ...]:
    if not metrics:
        return TREND_METRICS
    unknown = [m for m in metrics if m not in TREND_METRICS]
    if unknown:
        raise HTTPException(400, f"Invalid metrics: {', '.join(unknown)}")
    return tuple(metrics)


@router.get("/dashboard")
def dashboard(
    metrics: Optional[list[str]] = Query(None, description="average|median|min|max; repeat for several"),
    store: DataStore = Depends(get_store),
    spec: FilterSpec = Depends(parse_filter),
):
    """Summary statistics and every chart series for the filtered subset."""
    wanted = _metrics(metrics)
    try:
        subset = store.filter(spec)
        data = dashboard_summary(subset, wanted)
        data["filter_label"] = spec.label
        data["dataset_count"] = store.row_count()
        return _safe_json(data)
    except Exception as exc:
        logger.exception("dashboard failed")
        return _error(exc)


@router.get("/charts/{view}")
def chart(
    view: str,
    metrics: Optional[list[str]] = Query(None),
    store: DataStore = Depends(get_store),
    spec: FilterSpec = Depends(parse_filter),
):
    """One chart by key (price_distribution) or view label (価格分布)."""
    try:
        key = resolve_view(view)
    except ValueError:
        raise HTTPException(404, f"Unknown chart view: {view}")
    wanted = _metrics(metrics)
    try:
        series = chart_series(store.filter(spec), key, wanted)
        return _safe_json({"view": key, "series": series})
    except Exception as exc:
        logger.exception("chart %s failed", key)
        return _error(exc)


@router.get("/vehicles")
def vehicles(
    limit: int = Query(100, ge=1, le=5000),
    offset: int = Query(0, ge=0),
    store: DataStore = Depends(get_store),
    spec: FilterSpec = Depends(parse_filter),
):
    """Filtered listing rows in load order, paginated."""
    try:
        subset = store.filter(spec)
        page = subset.iloc[offset:offset + limit]
        return _safe_json({
            "total": len(subset),
            "offset": offset,
            "limit": limit,
            "rows": page.to_dict("records"),
        })
    except Exception as exc:
        logger.exception("vehicles failed")
        return _error(exc)
