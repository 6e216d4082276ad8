"""FastAPI server exposing passengers, invoices and stored invoice documents.

Every JSON endpoint except /api/health answers with the envelope::

    {"success": bool, "data": ..., "error": "...", "message": "..."}

Handlers are plain functions: Starlette runs them on its thread pool, so
downloads for different passengers proceed in parallel.
"""

from __future__ import annotations

import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, Protocol

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware

from airinvoice.domain.errors import ParsePreconditionError, PassengerNotFoundError
from airinvoice.domain.passenger import PassengerRecord, invoice_to_dict, record_to_dict
from airinvoice.domain.summary import (
    coerce_threshold,
    high_value_invoices,
    list_invoices,
    progress_counts,
    progress_to_dict,
    summarize_invoices,
    summary_to_dict,
)
from airinvoice.runtime.logging import get_logger
from airinvoice.runtime.paths import get_paths
from airinvoice.runtime.settings import get_settings

logger = get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3001


class PassengerService(Protocol):
    """Operations the server needs from the passenger workflow."""

    def get_all(self) -> list[PassengerRecord]: ...

    def get_by_id(self, passenger_id: str) -> PassengerRecord: ...

    def download_invoice(self, passenger_id: str) -> PassengerRecord: ...

    def parse_invoice(self, passenger_id: str) -> PassengerRecord: ...


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log each API call with its status and duration."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        if request.url.path.startswith("/api/"):
            logger.info("%s %s -> %d (%.2fs)", request.method, request.url.path, response.status_code, elapsed)
        return response


def _ok(data: Any, message: str | None = None) -> JSONResponse:
    body: dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    return JSONResponse(body)


def _fail(error: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": error}, status_code=status_code)


def create_app(service_factory: Callable[[], PassengerService]) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        service_factory: Returns the passenger service to serve. Called per
            request, so the service may be created lazily.
    """
    uploads_dir = get_paths().uploads

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Create data/uploads directories on startup."""
        get_paths().ensure_data_directories()
        yield

    app = FastAPI(title="Airline Invoice Tracker", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.add_middleware(RequestLogMiddleware)
    app.mount("/uploads", StaticFiles(directory=uploads_dir, check_dir=False), name="uploads")

    @app.get("/api/health")
    def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "OK", "message": "Server is running"}

    @app.get("/api/passengers")
    def list_passengers() -> JSONResponse:
        try:
            records = service_factory().get_all()
        except Exception:
            logger.exception("Error fetching passengers")
            return _fail("Failed to fetch passengers", 500)
        return _ok([record_to_dict(record) for record in records])

    @app.get("/api/passengers/{passenger_id}")
    def get_passenger(passenger_id: str) -> JSONResponse:
        try:
            record = service_factory().get_by_id(passenger_id)
        except PassengerNotFoundError as exc:
            return _fail(str(exc), 404)
        return _ok(record_to_dict(record))

    @app.post("/api/passengers/{passenger_id}/download")
    def download_invoice(passenger_id: str) -> JSONResponse:
        logger.info("Download request for passenger %s", passenger_id)
        try:
            record = service_factory().download_invoice(passenger_id)
        except PassengerNotFoundError as exc:
            return _fail(str(exc), 404)
        except Exception as exc:
            logger.exception("Error downloading invoice for %s", passenger_id)
            return _fail(str(exc) or "Failed to download invoice", 500)
        return _ok(record_to_dict(record), message="Invoice download finished")

    @app.post("/api/passengers/{passenger_id}/parse")
    def parse_invoice(passenger_id: str) -> JSONResponse:
        try:
            record = service_factory().parse_invoice(passenger_id)
        except PassengerNotFoundError as exc:
            return _fail(str(exc), 404)
        except ParsePreconditionError as exc:
            return _fail(str(exc), 409)
        except Exception as exc:
            logger.exception("Error parsing invoice for %s", passenger_id)
            return _fail(str(exc) or "Failed to parse invoice", 500)
        return _ok(record_to_dict(record), message="Invoice parse finished")

    @app.get("/api/invoices")
    def get_invoices() -> JSONResponse:
        try:
            invoices = list_invoices(service_factory().get_all())
        except Exception:
            logger.exception("Error fetching invoices")
            return _fail("Failed to fetch invoices", 500)
        return _ok([invoice_to_dict(invoice) for invoice in invoices])

    @app.get("/api/invoices/summary")
    def get_summary() -> JSONResponse:
        try:
            summary = summarize_invoices(service_factory().get_all(), get_settings().high_value_threshold)
        except Exception:
            logger.exception("Error building invoice summary")
            return _fail("Failed to fetch invoice summary", 500)
        return _ok(summary_to_dict(summary))

    @app.get("/api/invoices/high-value")
    def get_high_value(threshold: str | None = None) -> JSONResponse:
        try:
            resolved = coerce_threshold(threshold, default=get_settings().high_value_threshold)
            invoices = high_value_invoices(service_factory().get_all(), resolved)
        except Exception:
            logger.exception("Error fetching high-value invoices")
            return _fail("Failed to fetch high-value invoices", 500)
        return _ok([invoice_to_dict(invoice) for invoice in invoices])

    @app.get("/api/invoices/progress")
    def get_progress() -> JSONResponse:
        try:
            progress = progress_counts(service_factory().get_all())
        except Exception:
            logger.exception("Error fetching progress")
            return _fail("Failed to fetch progress", 500)
        return _ok(progress_to_dict(progress))

    return app


def run_server(app: FastAPI, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> None:
    import uvicorn

    uvicorn.run(app, host=host, port=port)
