"""
BarcodeSnap Backend — Temporary Storage Service
=================================================

What:  Owns the three scratch directories (uploads, processed_uploads, exports),
       allocates unique file paths in them, and deletes request files afterwards.
How:   Paths are built from a nanosecond timestamp plus a random suffix, so
       concurrent requests never share a path and no locking is needed.
Who:   Used by ScanService (intake + normalized images) and ExportService
       (persisted workbooks).
When:  Every /upload request, and /export-excel in persisted mode.

Directory layout (relative to the process root by default):
    uploads/              raw images as received, one per in-flight request
    processed_uploads/    normalized PNGs, one per in-flight request
    exports/              persisted Excel files (kept)
"""

import logging
import os
import re
import time
import uuid
from pathlib import Path
from typing import Optional, Union

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Extensions are only used as a hint for Pillow; anything odd is dropped
_SAFE_EXTENSION = re.compile(r"^\.[a-z0-9]{1,10}$")


def ensure_directory(path: PathLike) -> Path:
    """Create `path` (and parents) if it does not exist. Idempotent."""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def sanitize_extension(filename_or_ext: Optional[str]) -> str:
    """
    Reduce a client filename (or bare extension) to a safe lowercase suffix.

    "Photo.JPG" → ".jpg", ".png" → ".png", "../../etc/passwd" → "", None → ""
    """
    if not filename_or_ext:
        return ""
    if filename_or_ext.startswith(".") and "/" not in filename_or_ext:
        ext = filename_or_ext.lower()
    else:
        ext = Path(filename_or_ext).suffix.lower()
    return ext if _SAFE_EXTENSION.match(ext) else ""


class StorageService:
    """
    Manages the lifecycle of request-scoped files.

    Lifecycle of an uploaded image:
        1. allocate_path(upload_dir) + write_file() → uploads/<unique>.<ext>
        2. allocate_path(processed_dir, ".png") → handed to the normalizer
        3. read_file()    → bytes for the barcode decoder
        4. cleanup_files() in a finally block → both files removed
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        processed_dir: Optional[str] = None,
        export_dir: Optional[str] = None,
        max_file_size: Optional[int] = None,
    ):
        """
        Args:
            upload_dir / processed_dir / export_dir: Override the configured
                directories (used in tests). Not created until first use.
            max_file_size: Override settings.max_file_size.
        """
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.processed_dir = Path(processed_dir or settings.processed_dir)
        self.export_dir = Path(export_dir or settings.export_dir)
        self.max_file_size = max_file_size or settings.max_file_size

    @property
    def directories(self):
        return (self.upload_dir, self.processed_dir, self.export_dir)

    def ensure_directories(self) -> None:
        """Create all three scratch directories (called once at startup)."""
        for directory in self.directories:
            ensure_directory(directory)
            logger.info("Storage directory ready: %s", directory.resolve())

    def allocate_path(self, directory: PathLike, extension: str = "", prefix: str = "") -> Path:
        """
        Return a fresh, unused path inside `directory`.

        Format: <prefix><time_ns>-<8 hex chars><extension>
                e.g. uploads/1729246511123456789-3fa9c1d2.jpg
        The directory is created if it is missing. The file itself is not.
        """
        ensure_directory(directory)
        unique_name = f"{prefix}{time.time_ns()}-{uuid.uuid4().hex[:8]}{sanitize_extension(extension)}"
        return Path(directory) / unique_name

    def validate_size(self, content: bytes) -> None:
        """Reject uploads that are empty or larger than max_file_size."""
        if not content:
            raise ValidationError(message="The uploaded image is empty", field="image")

        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File size ({len(content) / (1024 * 1024):.1f}MB) "
                    f"exceeds maximum of {max_mb:.0f}MB."
                ),
                field="image",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )

    async def write_file(self, path: PathLike, content: bytes) -> Path:
        """Write bytes to `path` without blocking the event loop."""
        path = Path(path)
        try:
            ensure_directory(path.parent)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to write file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.debug("File written: %s (%d bytes)", path.name, len(content))
        return path

    async def save_upload(self, content: bytes, filename: Optional[str]) -> Path:
        """Persist a raw upload to the intake directory under a unique name."""
        path = self.allocate_path(self.upload_dir, sanitize_extension(filename))
        return await self.write_file(path, content)

    async def read_file(self, path: PathLike) -> bytes:
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error("Failed to read file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to read a processed image.",
                context={"path": str(path), "os_error": str(e)},
            )

    async def cleanup_file(self, file_path: Optional[PathLike]) -> None:
        """
        Remove a file if it exists. Best-effort.

        Missing files are fine (the step that would have created it failed).
        Any other error is logged and swallowed so it never replaces the
        result or error the request is already reporting.
        """
        if not file_path:
            return
        path = Path(file_path)
        try:
            if path.exists():
                os.remove(path)
                logger.debug("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except Exception as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def cleanup_files(self, *file_paths: Optional[PathLike]) -> None:
        for file_path in file_paths:
            await self.cleanup_file(file_path)

    def is_writable(self) -> bool:
        """True when every scratch directory exists and accepts writes."""
        return all(
            directory.is_dir() and os.access(directory, os.W_OK)
            for directory in self.directories
        )


# ── Singleton Instance ────────────────────────────────────────────────────
storage_service = StorageService()
