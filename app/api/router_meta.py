"""
Meta endpoints: health, models, filter options, reload.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.data.store import DataStore
from app.api.dependencies import get_store_or_empty
from app.api.response_models import (
    FilterOptionsResponse, HealthResponse, ModelsResponse, ReloadResponse,
)

router = APIRouter(prefix="/api", tags=["meta"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
def health(store: DataStore = Depends(get_store_or_empty)):
    return HealthResponse(
        status="ok",
        loaded=store.is_loaded,
        model=store.model,
        rows=store.row_count(),
        files=len(store.files),
        grades=len(store.grades()),
        parse_failures=store.diagnostic_summary()["total"],
    )


@router.get("/models", response_model=ModelsResponse)
def list_models(store: DataStore = Depends(get_store_or_empty)):
    return ModelsResponse(models=store.models(), current=store.model)


@router.get("/filter-options", response_model=FilterOptionsResponse)
def filter_options(store: DataStore = Depends(get_store_or_empty)):
    """Grades, ranges and dropdown values for the loaded dataset."""
    return FilterOptionsResponse(**store.filter_options())


@router.post("/reload", response_model=ReloadResponse)
def reload_data(
    model: Optional[str] = Query(None, description="Model folder; defaults to the current one"),
    store: DataStore = Depends(get_store_or_empty),
):
    """Re-scan the data folder and reload one model.

    Returns immediately, reload happens in background.
    """
    target = model or store.model
    if model is not None and model not in store.models():
        raise HTTPException(404, f"Unknown model: {model}")

    def _do_reload():
        try:
            store.load(target)
            print(f"  Reload complete — {store.row_count():,} rows for {store.model}")
        except Exception:
            logger.exception("reload failed")

    threading.Thread(target=_do_reload, daemon=True).start()
    return ReloadResponse(
        status="reloading",
        message="Data reload started in background. Check /api/health for updated row counts.",
    )
