"""
BarcodeSnap Backend — Excel Export Route Handler
==================================================

What:  POST /export-excel: turn a barcode list into an .xlsx file.
How:   Delegates to ExportService. The configured delivery mode decides the
       response shape:
           persisted → 200 {success: true, file: "<path>"}
           streamed  → the .xlsx bytes as an attachment download
"""

import logging

from fastapi import APIRouter
from fastapi.responses import Response

from app.schemas.barcode import ErrorResponse, ExportRequest, ExportResponse
from app.services.export_service import XLSX_MEDIA_TYPE, export_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Export"])


@router.post(
    "/export-excel",
    response_model=ExportResponse,
    responses={
        200: {
            "description": "File path (persisted mode) or .xlsx download (streamed mode)",
            "content": {XLSX_MEDIA_TYPE: {}},
        },
        400: {"description": "`data` is not an array", "model": ErrorResponse},
        500: {"description": "Workbook could not be written", "model": ErrorResponse},
    },
    summary="Export barcodes to Excel",
)
async def export_excel(payload: ExportRequest):
    if export_service.streams:
        content = await export_service.render(payload.data)
        filename = export_service.download_filename()
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    path = await export_service.persist(payload.data)
    return ExportResponse(file=str(path))
