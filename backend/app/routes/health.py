"""
BarcodeSnap Backend — Health Check Route
==========================================

What:  Health check endpoint for monitoring and container probes.
How:   Checks the scratch directories and whether the Sheets client exists.
       No call is made to Google; the check costs nothing.

Status levels:
    healthy:   storage writable and Google Sheets configured
    degraded:  anything else (scanning may still work)
"""

import logging
import time

from fastapi import APIRouter, Request

from app import __version__
from app.schemas.barcode import HealthResponse
from app.services.storage_service import storage_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    storage_status = "writable" if storage_service.is_writable() else "unavailable"

    connector = getattr(request.app.state, "sheets_connector", None)
    sheets_status = "configured" if connector is not None and connector.available else "not_configured"

    overall = "healthy"
    if storage_status != "writable" or sheets_status != "configured":
        overall = "degraded"
        logger.debug("Health check degraded: storage=%s sheets=%s", storage_status, sheets_status)

    return HealthResponse(
        status=overall,
        version=__version__,
        storage=storage_status,
        google_sheets=sheets_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
