"""
Car Market Analytics — FastAPI app factory; loads one model's listings at startup.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import DATA_FOLDER, DEFAULT_MODEL, EXPORT_FOLDER
from app.data.store import DataStore
from app.api.dependencies import set_store
from app.api.router_meta import router as meta_router
from app.api.router_dashboard import router as dashboard_router
from app.api.router_export import router as export_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    EXPORT_FOLDER.mkdir(parents=True, exist_ok=True)
    print(f"  Data folder: {DATA_FOLDER.resolve()} ({'found' if DATA_FOLDER.exists() else 'missing'})")

    store = DataStore(DATA_FOLDER)
    set_store(store)
    store.load(DEFAULT_MODEL)

    if store.row_count():
        print(f"\nCar Market Analytics ready — {store.model}: {store.row_count():,} listings, "
              f"{len(store.grades())} grades, {len(store.files)} files\n")
    else:
        print("\nCar Market Analytics ready — no listings yet. "
              "Add <model>/<date>/*.csv under the data folder and POST /api/reload.\n")
    yield


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Car Market Analytics API",
        description="Used-car listing analytics: price statistics, distributions and grade comparisons",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(Exception, _unhandled)

    for router in (meta_router, dashboard_router, export_router):
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    def index():
        paths = app.openapi()["paths"]
        return {
            "name": app.title,
            "version": app.version,
            "endpoints": sorted(p for p in paths if p.startswith("/api")),
        }

    return app


app = create_app()
