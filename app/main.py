"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.booking.errors import (
    AppointmentNotFound,
    BookingEngineError,
    BookingTimeout,
    InvalidInput,
    PersistenceFailure,
    SlotUnavailable,
)
from app.core.config import settings
from app.core.logging import setup_logging
from app.db.init_db import init_db
from app.db.session import engine

setup_logging()
logger = logging.getLogger(__name__)

API_TITLE = "Slotkeeper Booking API"
API_VERSION = "0.1.0"

# Most specific first: AppointmentNotFound is an InvalidInput
ERROR_RESPONSES: list[tuple[type[BookingEngineError], int, str]] = [
    (AppointmentNotFound, status.HTTP_404_NOT_FOUND, "not_found"),
    (InvalidInput, status.HTTP_400_BAD_REQUEST, "invalid_input"),
    (SlotUnavailable, status.HTTP_409_CONFLICT, "slot_unavailable"),
    (BookingTimeout, status.HTTP_503_SERVICE_UNAVAILABLE, "booking_timeout"),
    (PersistenceFailure, status.HTTP_500_INTERNAL_SERVER_ERROR, "persistence_failure"),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables in development if asked to; dispose the engine on exit."""
    logger.info(f"Starting {API_TITLE} (env={settings.env})")

    if settings.init_db_on_startup and settings.is_dev:
        await init_db(engine)

    yield

    logger.info(f"Shutting down {API_TITLE}")
    await engine.dispose()


app = FastAPI(
    title=API_TITLE,
    description="Availability and booking engine for appointment-based services",
    version=API_VERSION,
    docs_url="/docs" if settings.is_dev else None,
    redoc_url="/redoc" if settings.is_dev else None,
    openapi_url="/openapi.json" if settings.is_dev else None,
    lifespan=lifespan,
)

if settings.is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_methods=["GET", "POST", "PATCH"],
        allow_headers=["*"],
    )


@app.exception_handler(BookingEngineError)
async def booking_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    """Translate engine errors into JSON responses.

    Clients receiving ``slot_unavailable`` should re-fetch availability;
    ``booking_timeout`` is safe to retry.
    """
    for error_type, status_code, code in ERROR_RESPONSES:
        if not isinstance(exc, error_type):
            continue

        content: dict = {"detail": str(exc), "error": code}
        headers = None
        if error_type is SlotUnavailable:
            content["refresh_availability"] = True
        elif error_type is BookingTimeout:
            headers = {"Retry-After": "1"}
        elif error_type is PersistenceFailure:
            logger.error(f"Persistence failure on {request.url.path}: {exc}")

        return JSONResponse(status_code=status_code, content=content, headers=headers)

    logger.exception(f"Unmapped booking engine error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; hides details in production."""
    logger.exception(f"Unhandled exception: {exc}")

    detail = "Internal server error" if settings.is_prod else str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": detail},
    )


app.include_router(api_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root() -> dict:
    """Service name, version and where the docs live."""
    return {
        "service": API_TITLE,
        "version": API_VERSION,
        "docs": "/docs" if settings.is_dev else "Disabled in production",
    }
