"""FastAPI adapter exposing the registration-window engine as JSON."""

from __future__ import annotations

import logging
import tomllib
from importlib.metadata import PackageNotFoundError, version as pkg_version
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .snapshot import (
    EventSnapshotPayload,
    capacity_for,
    countdown_for,
    serialize_capacity,
    serialize_countdown,
    snapshot_report,
)

# Use uvicorn's error logger so messages get the level prefix in the default log
# format.
logger = logging.getLogger("uvicorn.error")


def _no_cache(response: Response) -> Response:
    """Results depend on the clock, so clients must never cache them."""
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


def _load_app_version() -> str:
    """Return the current package version, falling back to pyproject for dev runs."""
    try:
        return pkg_version("joinwindow")
    except PackageNotFoundError:
        pyproject_path = Path(__file__).resolve().parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            data = tomllib.loads(pyproject_path.read_text())
            project = data.get("project") or {}
            return str(project.get("version") or "dev")
    return "dev"


APP_VERSION = _load_app_version()

app = FastAPI(title="joinwindow", version=APP_VERSION)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info("Rejected invalid snapshot for %s", request.url.path)
    return JSONResponse({"detail": exc.errors()}, status_code=422)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Gracefully handle unexpected errors."""
    logger.exception(
        "Unhandled error while processing %s %s", request.method, request.url.path
    )
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


def _run(handler, payload: EventSnapshotPayload):
    try:
        return handler(payload)
    except ValueError as exc:
        logger.info("Rejected snapshot: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.get("/api/v1/health")
def api_health():
    return {"status": "ok", "version": APP_VERSION}


@app.post("/api/v1/join-state")
def api_join_state(payload: EventSnapshotPayload, response: Response):
    _no_cache(response)
    return _run(snapshot_report, payload)


@app.post("/api/v1/countdown")
def api_countdown(payload: EventSnapshotPayload, response: Response):
    _no_cache(response)
    countdown = _run(countdown_for, payload)
    return {"countdown": serialize_countdown(countdown)}


@app.post("/api/v1/capacity")
def api_capacity(payload: EventSnapshotPayload):
    return {"capacity": serialize_capacity(_run(capacity_for, payload))}
