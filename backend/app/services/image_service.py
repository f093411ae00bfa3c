"""
BarcodeSnap Backend — Image Normalization Service
===================================================

What:  Turns a user photo or scan into a grayscale, sharpened, size-bounded PNG.
How:   Pillow does the pixel work inside a worker thread
       (run_in_threadpool) so other requests keep flowing.
Who:   Called by ScanService between intake and barcode extraction.
When:  Once per /upload request.

Normalization steps (in order):
    1. Convert to single-channel grayscale ("L")
    2. Sharpen edges (compensates for camera blur)
    3. Fit inside max_width × max_height, keeping aspect ratio, never upscaling
    4. Encode as PNG (lossless)
"""

import logging
import time
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageFilter, ImageOps
from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.exceptions import ImageProcessingError
from app.services.engine_base import ImageTranscoder
from app.services.storage_service import StorageService, storage_service

logger = logging.getLogger(__name__)


class PillowTranscoder(ImageTranscoder):
    """Pillow implementation of the normalization steps."""

    def __init__(self, max_size: Tuple[int, int] = (1600, 1400)):
        self.max_size = max_size

    def transcode(self, input_path: Path, output_path: Path) -> None:
        with Image.open(input_path) as source:
            # Phone photos carry rotation in EXIF; apply it before anything else
            image = ImageOps.exif_transpose(source)
            image = image.convert("L")
            image = image.filter(ImageFilter.SHARPEN)
            # thumbnail() only ever shrinks and keeps the aspect ratio
            image.thumbnail(self.max_size, Image.LANCZOS)
            image.save(output_path, format="PNG")


class ImageNormalizer:
    """
    Async wrapper that owns the output file location and error translation.

    Args:
        transcoder: Engine adapter (defaults to PillowTranscoder with the
                    configured bounding box).
        storage:    Used to allocate the output path when the caller does not.
    """

    def __init__(
        self,
        transcoder: Optional[ImageTranscoder] = None,
        storage: Optional[StorageService] = None,
    ):
        self.transcoder = transcoder or PillowTranscoder(
            max_size=(settings.normalize_max_width, settings.normalize_max_height)
        )
        self.storage = storage or storage_service

    async def normalize(self, input_path: Path, output_path: Optional[Path] = None) -> Path:
        """
        Normalize `input_path` into a new PNG file.

        Args:
            input_path:  Raw upload on disk (left untouched).
            output_path: Where to write the PNG. Allocated in processed_dir
                         when omitted. Callers that must clean up after a
                         failure should allocate it themselves.

        Returns:
            Path of the written PNG.

        Raises:
            ImageProcessingError: Pillow could not read, filter, or encode the image.
        """
        if output_path is None:
            output_path = self.storage.allocate_path(self.storage.processed_dir, ".png")

        start_time = time.perf_counter()
        try:
            await run_in_threadpool(self.transcoder.transcode, Path(input_path), Path(output_path))
        except Exception as e:
            logger.error(
                "Image normalization failed for %s: %s",
                Path(input_path).name,
                str(e),
            )
            raise ImageProcessingError(
                context={"input": Path(input_path).name, "error_type": type(e).__name__, "error": str(e)},
            )

        logger.info(
            "Normalized %s → %s in %.0fms",
            Path(input_path).name,
            Path(output_path).name,
            (time.perf_counter() - start_time) * 1000,
        )
        return Path(output_path)


# ── Singleton Instance ────────────────────────────────────────────────────
image_normalizer = ImageNormalizer()
