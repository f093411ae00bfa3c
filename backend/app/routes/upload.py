"""
BarcodeSnap Backend — Upload Route Handler
============================================

What:  POST /upload: decode every barcode in an uploaded photo or scan.
How:   Receives multipart form field `image`, delegates to ScanService,
       returns the barcode list.
Who:   Called by the frontend scanner page.

Request Flow:
    1. Client sends multipart/form-data with an `image` file field
    2. We read the file content into memory (bounded by max_file_size)
    3. ScanService: store → normalize → decode → cleanup
    4. Return 200 {success: true, barcodes: [...]}
    Errors are formatted by the global exception handlers in main.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, UploadFile

from app.schemas.barcode import ErrorResponse, UploadResponse
from app.services.scan_service import scan_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scan"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        400: {"description": "Missing image, image too large, or no barcode found", "model": ErrorResponse},
        500: {"description": "Image could not be processed", "model": ErrorResponse},
    },
    summary="Scan all barcodes in an image",
)
async def upload_image(
    image: Optional[UploadFile] = File(
        default=None,
        description="Photo or scan containing one or more barcodes",
    ),
) -> UploadResponse:
    """
    Decode every barcode in the uploaded image.

    Returns:
        UploadResponse: barcodes in detection order, duplicates kept.

    Error responses (handled by global exception handlers):
        HTTP 400: no image / empty or oversized image / no barcode found
        HTTP 500: normalization, decoding, or storage failure
    """
    if image is None:
        barcodes = await scan_service.scan(filename=None, content=None)
        return UploadResponse(barcodes=barcodes)

    try:
        content = await image.read()
        logger.info(
            "Received upload: filename=%s, size=%d bytes",
            image.filename or "unknown",
            len(content),
        )
        barcodes = await scan_service.scan(filename=image.filename, content=content)
    finally:
        await image.close()

    return UploadResponse(barcodes=barcodes)
