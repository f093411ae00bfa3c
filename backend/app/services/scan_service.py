"""
BarcodeSnap Backend — Scan Service (Ingestion Pipeline)
=========================================================

What:  Runs one uploaded image through intake → normalize → decode → cleanup.
How:   Composes StorageService, ImageNormalizer and BarcodeExtractor. Both
       temporary files are removed in a `finally` block, so they never outlive
       the request whatever the outcome.
Who:   Called by the POST /upload route handler.
When:  Once per upload.

Per-request state machine:

    RECEIVED ──▶ NORMALIZING ──▶ EXTRACTING ──▶ CLEANING_UP ──┬─▶ SUCCEEDED
        │              │               │                       ├─▶ EMPTY_RESULT (400)
        │              └───────────────┴──(fault)──▶ CLEANING_UP ─▶ FAILED (500)
        └─(no image)─▶ FAILED (400, no files touched)

Error Recovery:
    Missing / empty / oversized image  → ValidationError (400), nothing written
    Intake write fails                 → FileStorageError (500)
    Normalization fails                → ImageProcessingError (500)
    Decoder fails                      → BarcodeDecodeError (500)
    Decoder finds nothing              → NoBarcodeFoundError (400)
"""

import enum
import logging
from pathlib import Path
from typing import List, Optional

from app.exceptions import NoBarcodeFoundError, ValidationError
from app.middleware.request_id import request_id_var
from app.services.barcode_service import BarcodeExtractor, barcode_extractor
from app.services.image_service import ImageNormalizer, image_normalizer
from app.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)


class ScanState(str, enum.Enum):
    RECEIVED = "received"
    NORMALIZING = "normalizing"
    EXTRACTING = "extracting"
    CLEANING_UP = "cleaning_up"
    SUCCEEDED = "succeeded"
    EMPTY_RESULT = "empty_result"
    FAILED = "failed"


class ScanService:
    """
    Stateless orchestrator; every call owns its own files.

    Dependencies default to the module singletons and can be replaced
    per instance (tests pass fakes).
    """

    def __init__(
        self,
        storage: Optional[StorageService] = None,
        normalizer: Optional[ImageNormalizer] = None,
        extractor: Optional[BarcodeExtractor] = None,
    ):
        self.storage = storage or storage_service
        self.normalizer = normalizer or image_normalizer
        self.extractor = extractor or barcode_extractor

    def _transition(self, state: ScanState) -> None:
        logger.debug("[%s] scan state → %s", request_id_var.get(""), state.value)

    async def scan(self, filename: Optional[str], content: Optional[bytes]) -> List[str]:
        """
        Decode every barcode in an uploaded image.

        Args:
            filename: Original client filename (only its extension is used).
            content:  Raw image bytes; None when no `image` field was sent.

        Returns:
            Non-empty list of barcode texts in detection order.

        Raises:
            ValidationError:      No image, empty image, or image too large.
            NoBarcodeFoundError:  Image decoded but holds no barcode.
            FileStorageError / ImageProcessingError / BarcodeDecodeError:
                                  Server-side fault (500).
        """
        self._transition(ScanState.RECEIVED)
        if content is None:
            self._transition(ScanState.FAILED)
            raise ValidationError(message="Please upload an image", field="image")
        self.storage.validate_size(content)

        # Allocated before the write: a half-written upload is still removed
        upload_path = self.storage.allocate_path(self.storage.upload_dir, filename or "")
        processed_path: Optional[Path] = None
        failed = False
        try:
            await self.storage.write_file(upload_path, content)
            logger.info("Processing image: %s (%d bytes)", upload_path.name, len(content))

            self._transition(ScanState.NORMALIZING)
            processed_path = self.storage.allocate_path(self.storage.processed_dir, ".png")
            await self.normalizer.normalize(upload_path, processed_path)

            self._transition(ScanState.EXTRACTING)
            image_bytes = await self.storage.read_file(processed_path)
            barcodes = await self.extractor.extract(image_bytes)
        except Exception:
            failed = True
            raise
        finally:
            self._transition(ScanState.CLEANING_UP)
            await self.storage.cleanup_files(upload_path, processed_path)
            if failed:
                self._transition(ScanState.FAILED)

        if not barcodes:
            self._transition(ScanState.EMPTY_RESULT)
            raise NoBarcodeFoundError()

        self._transition(ScanState.SUCCEEDED)
        logger.info("Barcodes found: %s", barcodes)
        return barcodes


# ── Singleton Instance ────────────────────────────────────────────────────
scan_service = ScanService()
