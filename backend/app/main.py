"""
BarcodeSnap Backend — FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌───────────────────────────────────────────────────────────┐
    │                       FastAPI App                         │
    │                                                           │
    │  Middleware Chain:                                        │
    │  ┌──────────┐ ┌──────────────┐ ┌──────┐ ┌──────┐          │
    │  │ Req ID   │→│ Logging      │→│ GZip │→│ CORS │          │
    │  └──────────┘ └──────────────┘ └──────┘ └──────┘          │
    │                                                           │
    │  Routes:                                                  │
    │  POST /upload  POST /export-excel  POST /upload-google-   │
    │  sheet  GET /health                                       │
    │                                                           │
    │  Exception Handlers:                                      │
    │  Validation→400 │ Processing→500 │ Sheets→500/503         │
    └───────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Report configuration gaps (never fatal)
    3. Create the uploads / processed_uploads / exports directories
    4. Build the Google Sheets connector once (degrades to 503 on failure)

    Shutdown:
    1. Log shutdown complete
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.exceptions import (
    BarcodeSnapError,
    ValidationError,
    FileStorageError,
    ImageProcessingError,
    BarcodeDecodeError,
    ExportError,
    SheetsServiceError,
    SheetsUnavailableError,
)
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.middleware.logging import RequestLoggingMiddleware
from app.routes import upload, export, sheets, health
from app.services.sheets_service import create_sheets_connector
from app.services.storage_service import storage_service

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error!"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
    logging.getLogger("googleapiclient.discovery").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, directories, one-time Google Sheets authentication.

    A Sheets authentication failure does not abort startup: scanning and
    Excel export keep working and /upload-google-sheet answers 503.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("BarcodeSnap Backend %s starting up...", __version__)

    for warning in settings.configuration_warnings():
        logger.warning("Configuration warning: %s", warning)

    storage_service.ensure_directories()

    app.state.sheets_connector = create_sheets_connector(
        settings.google_cloud_credentials,
        settings.google_sheet_range,
    )

    logger.info("Export delivery mode: %s", settings.export_delivery_mode)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("BarcodeSnap Backend shutting down...")
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    """Build the `{success: false, message[, error]}` body every endpoint shares."""
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError          → 400 (includes NoBarcodeFoundError)
        RequestValidationError   → 400 (malformed body / wrong field types)
        ImageProcessingError     → 500 (generic message)
        BarcodeDecodeError       → 500 (generic message)
        FileStorageError         → 500 (generic message)
        ExportError              → 500 (generic message)
        SheetsServiceError       → 500 (message + provider error text)
        SheetsUnavailableError   → 503 (message + reason)
        BarcodeSnapError (base)  → 500
        Exception (fallback)     → 500

    Internal details (paths, engine errors) are logged, never returned,
    except for the Google Sheets error text.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return error_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Malformed request: %s", rid, exc.errors())
        return error_response(400, "Invalid request body")

    @app.exception_handler(ImageProcessingError)
    @app.exception_handler(BarcodeDecodeError)
    @app.exception_handler(FileStorageError)
    @app.exception_handler(ExportError)
    async def handle_processing_error(request: Request, exc: BarcodeSnapError):
        """Processing fault: generic message to the client, details in the log."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s",
            rid,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return error_response(500, GENERIC_SERVER_ERROR)

    @app.exception_handler(SheetsServiceError)
    async def handle_sheets_error(request: Request, exc: SheetsServiceError):
        rid = request_id_var.get("")
        logger.error("[%s] Google Sheets API error: %s | Context: %s", rid, exc.error, exc.context)
        return error_response(500, exc.message, error=exc.error)

    @app.exception_handler(SheetsUnavailableError)
    async def handle_sheets_unavailable(request: Request, exc: SheetsUnavailableError):
        rid = request_id_var.get("")
        logger.warning("[%s] Google Sheets unavailable: %s", rid, exc.error)
        return error_response(503, exc.message, error=exc.error)

    @app.exception_handler(BarcodeSnapError)
    async def handle_app_error(request: Request, exc: BarcodeSnapError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(500, GENERIC_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace is logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(500, GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="BarcodeSnap API",
        description=(
            "Scan every barcode in a photo or scan, then export the values "
            "to Excel or append them to a Google Sheet."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(upload.router)
    app.include_router(export.router)
    app.include_router(sheets.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
