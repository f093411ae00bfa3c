"""
BarcodeSnap Backend — Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for every failure the service can report.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return `{"success": false, "message": ...}` with the right status code.
Who:   Raised by services and routes; caught by global handlers.
When:  During request processing.

Exception Hierarchy:
    BarcodeSnapError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    │   └── NoBarcodeFoundError  → 400 Bad Request (image decoded, nothing found)
    ├── FileStorageError         → 500 Internal Server Error
    ├── ImageProcessingError     → 500 Internal Server Error
    ├── BarcodeDecodeError       → 500 Internal Server Error
    ├── ExportError              → 500 Internal Server Error
    ├── SheetsServiceError       → 500 Internal Server Error (provider text exposed)
    └── SheetsUnavailableError   → 503 Service Unavailable

Client-facing messages for 5xx processing faults are generic; the detail
lives in `context` and is logged server-side only. Google Sheets faults are
the exception: the provider's error text is returned as `error`.
"""

from typing import Any, Dict, Optional


class BarcodeSnapError(Exception):
    """
    Base exception for all BarcodeSnap application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(BarcodeSnapError):
    """
    Raised when client input fails validation.

    When:    Missing image, oversized upload, non-array export payload,
             malformed spreadsheet URL, invalid barcode array.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NoBarcodeFoundError(ValidationError):
    """
    Raised when decoding succeeded but found zero symbols.

    Distinct from BarcodeDecodeError: the decoder ran fine, the image simply
    holds nothing readable. The client can retry with a better photo.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "No barcode found in the image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, field="image", context=context)


class FileStorageError(BarcodeSnapError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ImageProcessingError(BarcodeSnapError):
    """
    Raised when the uploaded image cannot be normalized.

    When:    Unrecognized image format, truncated file, encoder failure.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Server error while processing the image",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class BarcodeDecodeError(BarcodeSnapError):
    """
    Raised when the barcode engine itself faults.

    An empty result is NOT a decode error; see NoBarcodeFoundError.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Server error while reading barcodes",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ExportError(BarcodeSnapError):
    """
    Raised when the Excel workbook cannot be built or written.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Server error while exporting to Excel",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class SheetsServiceError(BarcodeSnapError):
    """
    Raised when the Google Sheets API rejects or fails an append.

    Attributes:
        error:  Provider error text, returned to the caller as `error`
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Server error while writing to Google Sheets",
        error: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["provider_error"] = error
        super().__init__(message=message, context=ctx)
        self.error = error


class SheetsUnavailableError(BarcodeSnapError):
    """
    Raised when no authenticated Sheets client exists.

    When:    GOOGLE_CLOUD_CREDENTIALS missing or rejected at startup.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Google Sheets integration is not available",
        error: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.error = error
