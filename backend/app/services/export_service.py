"""
BarcodeSnap Backend — Excel Export Service
============================================

What:  Builds a two-column .xlsx (STT, Mã Vạch) from a list of barcode values.
How:   openpyxl workbook in memory; then either saved under exports/ (persisted
       mode) or returned as bytes for a download response (streamed mode).
Who:   Called by the POST /export-excel route handler.
When:  On demand; rows are rebuilt from the request payload every time.

Sheet layout:
    ┌─────┬───────────────┐
    │ STT │ Mã Vạch       │   header row
    ├─────┼───────────────┤
    │  1  │ 8934563138165 │
    │  2  │ 8935049500520 │
    └─────┴───────────────┘
"""

import io
import logging
import time
from pathlib import Path
from typing import Any, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from starlette.concurrency import run_in_threadpool

from app.config import DELIVERY_STREAMED, settings
from app.exceptions import ExportError, ValidationError
from app.schemas.barcode import ExportRow
from app.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_TITLE = "Barcode Data"
# (header, column width)
COLUMNS = [("STT", 10), ("Mã Vạch", 30)]

# Types openpyxl writes natively; anything else is written as its str()
_CELL_TYPES = (str, int, float, bool)


def _cell_value(value: Any) -> Any:
    if value is None or isinstance(value, _CELL_TYPES):
        return value
    return str(value)


def build_rows(values: Any) -> List[ExportRow]:
    """
    Turn the request payload into numbered rows.

    Raises:
        ValidationError: `values` is not a list.
    """
    if not isinstance(values, list):
        raise ValidationError(
            message="Invalid data: expected an array of barcodes",
            field="data",
            context={"received_type": type(values).__name__},
        )
    return [ExportRow(index=i, barcode=_cell_value(v)) for i, v in enumerate(values, start=1)]


def build_workbook(rows: List[ExportRow]) -> Workbook:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = SHEET_TITLE

    worksheet.append([header for header, _ in COLUMNS])
    for cell in worksheet[1]:
        cell.font = Font(bold=True)
    for letter, (_, width) in zip("AB", COLUMNS):
        worksheet.column_dimensions[letter].width = width

    for row in rows:
        worksheet.append([row.index, row.barcode])
    return workbook


def workbook_to_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class ExportService:
    """
    One builder, two delivery modes.

    Args:
        storage:       Supplies export_dir and unique file names.
        delivery_mode: "persisted" or "streamed"; defaults to settings.
    """

    def __init__(
        self,
        storage: Optional[StorageService] = None,
        delivery_mode: Optional[str] = None,
    ):
        self.storage = storage or storage_service
        self.delivery_mode = delivery_mode or settings.export_delivery_mode

    @property
    def streams(self) -> bool:
        return self.delivery_mode == DELIVERY_STREAMED

    async def persist(self, values: Any) -> Path:
        """
        Build the workbook and save it as exports/output_<unique>.xlsx.

        Returns:
            Path of the written file.
        """
        rows = build_rows(values)
        path = self.storage.allocate_path(self.storage.export_dir, ".xlsx", prefix="output_")
        try:
            workbook = build_workbook(rows)
            await run_in_threadpool(workbook.save, path)
        except Exception as e:
            logger.error("Excel export to %s failed: %s", path, str(e), exc_info=True)
            await self.storage.cleanup_file(path)
            raise ExportError(context={"path": str(path), "error_type": type(e).__name__})

        logger.info("Excel exported: %s (%d rows)", path, len(rows))
        return path

    async def render(self, values: Any) -> bytes:
        """Build the workbook and return the .xlsx bytes without touching disk."""
        rows = build_rows(values)
        try:
            content = await run_in_threadpool(lambda: workbook_to_bytes(build_workbook(rows)))
        except Exception as e:
            logger.error("Excel export failed: %s", str(e), exc_info=True)
            raise ExportError(context={"error_type": type(e).__name__})

        logger.info("Excel rendered in memory (%d rows, %d bytes)", len(rows), len(content))
        return content

    @staticmethod
    def download_filename() -> str:
        return f"barcodes_{int(time.time() * 1000)}.xlsx"


# ── Singleton Instance ────────────────────────────────────────────────────
export_service = ExportService()
