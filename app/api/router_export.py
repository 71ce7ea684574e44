"""
Export endpoints — filtered listing as CSV, dashboard report as Excel.
"""
from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, JSONResponse, Response

from app.config import EXPORT_FOLDER
from app.data.export import export_csv, export_filename
from app.data.store import DataStore
from app.data.schemas import FilterSpec
from app.api.dependencies import get_store, parse_filter
from app.reports import dashboard_report

router = APIRouter(prefix="/api/export", tags=["export"])
logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _output_path(name: str) -> Path:
    EXPORT_FOLDER.mkdir(parents=True, exist_ok=True)
    return EXPORT_FOLDER / name


@router.get("/csv")
def csv_export(
    store: DataStore = Depends(get_store),
    spec: FilterSpec = Depends(parse_filter),
):
    """Filtered listing as UTF-8 CSV (with BOM)."""
    try:
        body = export_csv(store.filter(spec))
    except Exception as exc:
        logger.exception("csv export failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
    )


@router.get("/excel")
def excel_export(
    store: DataStore = Depends(get_store),
    spec: FilterSpec = Depends(parse_filter),
):
    """Styled dashboard workbook for the filtered subset."""
    name = f"Dashboard_{dt.datetime.now():%Y%m%d_%H%M%S}.xlsx"
    try:
        path = dashboard_report.generate_excel(store, _output_path(name), spec)
    except Exception as exc:
        logger.exception("excel export failed")
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})
    return FileResponse(path=str(path), filename=path.name, media_type=XLSX_MEDIA_TYPE)
