"""
BarcodeSnap Backend — Pydantic Request/Response Schemas
=========================================================

What:  Pydantic models for the API contract and for the small internal value
       types passed between services (DecodedSymbol, ExportRow).
How:   FastAPI uses the request models to parse JSON bodies and the response
       models to serialize results and generate OpenAPI docs.
Who:   Route handlers and services.

Request payload fields are typed `Any`; the services check them and
answer 400 `{success: false, message}` rather than FastAPI's 422 schema error.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Internal Value Types
# ══════════════════════════════════════════════════════════════════════════


class DecodedSymbol(BaseModel):
    """One barcode as reported by the decoder engine."""
    text: str = Field(description="Decoded payload")
    symbology: str = Field(default="", description="Engine format name, e.g. EAN13, QRCode")


class ExportRow(BaseModel):
    """One spreadsheet row: 1-based position and the barcode value."""
    index: int = Field(ge=1, description="1-based sequence number (STT column)")
    barcode: Any = Field(description="Barcode value (Mã Vạch column)")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ExportRequest(BaseModel):
    """
    Body of POST /export-excel.

    Example:
        {"data": ["8934563138165", "8935049500520"]}
    """
    data: Any = Field(default=None, description="Array of barcode values to export")


class SheetAppendRequest(BaseModel):
    """
    Body of POST /upload-google-sheet.

    Example:
        {
            "sheetUrl": "https://docs.google.com/spreadsheets/d/1AbC-xyz_09/edit",
            "barcodes": ["8934563138165"]
        }
    """
    sheet_url: Any = Field(default=None, alias="sheetUrl", description="Google Sheet URL")
    barcodes: Any = Field(default=None, description="Non-empty array of barcode strings")

    model_config = {"populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UploadResponse(BaseModel):
    """
    What:  Result of POST /upload.
    Order of `barcodes` is detection order; duplicates are kept.
    """
    success: bool = Field(default=True)
    barcodes: List[str] = Field(description="Decoded barcode values, detection order")


class ExportResponse(BaseModel):
    """Result of POST /export-excel in persisted mode."""
    success: bool = Field(default=True)
    file: str = Field(description="Path of the written .xlsx file")


class SheetAppendResponse(BaseModel):
    """Result of POST /upload-google-sheet."""
    success: bool = Field(default=True)
    message: str = Field(default="Data written to Google Sheets")


class ErrorResponse(BaseModel):
    """
    What:  Error body shared by every endpoint.

    Example:
        {"success": false, "message": "No barcode found in the image"}

    `error` is only present for Google Sheets failures and carries the
    provider's own error text.
    """
    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    error: Optional[str] = Field(default=None, description="Provider error text")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    storage: str = Field(description="Scratch directories: writable, unavailable")
    google_sheets: str = Field(description="Sheets integration: configured, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
