# src/hotspotmap/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance, the CORS policy and the 400 shape for
request validation errors.
Endpoints live in `hotspotmap.api.routes`.
"""

from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from hotspotmap.core.logging import configure_logging

from .routes import router

configure_logging()

app = FastAPI(title="HotspotMap API", version="0.1.0")

# CORS (dev-friendly): allow the local map frontend to call this API.
# Configure via env:
# - HOTSPOTMAP_CORS_ORIGINS="http://localhost:5173,http://127.0.0.1:5173"
# - HOTSPOTMAP_CORS_ALLOW_LOCAL=0 to disable the default localhost allowance
cors_origins = [s.strip() for s in os.getenv("HOTSPOTMAP_CORS_ORIGINS", "").split(",") if s.strip()]
cors_allow_local = os.getenv("HOTSPOTMAP_CORS_ALLOW_LOCAL", "1").strip().lower() in {"1", "true", "yes", "y"}
cors_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$" if cors_allow_local and not cors_origins else ""
if cors_origins or cors_origin_regex:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=cors_origin_regex or None,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Unparseable query values get the same 400 shape as range checks in the routes.
    fields = ", ".join(".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors())
    return JSONResponse(
        status_code=400,
        content={"detail": {"code": "VALIDATION_ERROR", "message": f"invalid query parameter(s): {fields}"}},
    )


app.include_router(router)
