"""
BarcodeSnap Backend — Google Sheets Route Handler
===================================================

What:  POST /upload-google-sheet: append barcodes to a Google Sheet.
How:   The SheetsConnector built at startup is injected with Depends and
       does all validation before anything is sent to Google.
"""

import logging

from fastapi import APIRouter, Depends, Request

from app.schemas.barcode import ErrorResponse, SheetAppendRequest, SheetAppendResponse
from app.services.sheets_service import SheetsConnector

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Google Sheets"])


def get_sheets_connector(request: Request) -> SheetsConnector:
    """
    Return the connector created in the lifespan.

    Falls back to an unconfigured connector when the lifespan has not run
    (e.g. ASGI test transports), so validation still answers 400 and an
    append answers 503.
    """
    connector = getattr(request.app.state, "sheets_connector", None)
    if connector is None:
        return SheetsConnector(startup_error="Google Sheets client was not initialized")
    return connector


@router.post(
    "/upload-google-sheet",
    response_model=SheetAppendResponse,
    responses={
        400: {"description": "Invalid sheet URL or barcode array", "model": ErrorResponse},
        500: {"description": "Google Sheets API error", "model": ErrorResponse},
        503: {"description": "Google Sheets integration not configured", "model": ErrorResponse},
    },
    summary="Append barcodes to a Google Sheet",
)
async def upload_google_sheet(
    payload: SheetAppendRequest,
    connector: SheetsConnector = Depends(get_sheets_connector),
) -> SheetAppendResponse:
    count = await connector.append(payload.sheet_url, payload.barcodes)
    logger.info("Wrote %d row(s) to Google Sheets", count)
    return SheetAppendResponse()
