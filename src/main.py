from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.alerts import router as alerts_router
from src.adapters.api.controllers.reports import router as reports_router
from src.adapters.api.controllers.tracking import router as tracking_router
from src.adapters.api.controllers.trips import router as trips_router
from src.adapters.api.controllers.vehicles import router as vehicles_router
from src.adapters.api.dependencies import get_container
from src.domain.exceptions import (
    ReplayCancelled,
    SequenceError,
    StorageError,
    TrackingError,
    ValidationError,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Persist trips still open at shutdown.
    if get_container.cache_info().currsize:
        get_container().ingest.close_open_trips()


app = FastAPI(title="FleetTrack", lifespan=lifespan)
app.include_router(tracking_router)
app.include_router(vehicles_router)
app.include_router(trips_router)
app.include_router(alerts_router)
app.include_router(reports_router)

_STATUS_BY_ERROR: tuple[tuple[type[TrackingError], int], ...] = (
    (ValidationError, 422),
    (SequenceError, 409),
    (StorageError, 503),
    (ReplayCancelled, 504),
)


@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    status_code = next(
        (code for error_type, code in _STATUS_BY_ERROR if isinstance(exc, error_type)),
        400,
    )
    if status_code >= 500:
        logging.getLogger("uvicorn.error").error(
            "%s on %s: %s", type(exc).__name__, request.url.path, exc
        )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc) or exc.__class__.__name__, "error": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Keep API errors JSON; Starlette's default 500 is plain text."""

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("FLEET_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }
    detail = (str(exc) or exc.__class__.__name__) if reveal else "Internal Server Error"
    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
