"""
BarcodeSnap Backend — Scan Pipeline Tests
===========================================

What:  The intake → normalize → decode → cleanup pipeline end to end.
How:   Real StorageService + real Pillow normalizer in tmp_path; fake decoder,
       except for the tests that run zxing-cpp on rendered barcodes.

Every test that reaches intake also checks that uploads/ and
processed_uploads/ are empty afterwards, whatever the outcome.
"""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import zxingcpp

from app.exceptions import (
    BarcodeDecodeError,
    FileStorageError,
    ImageProcessingError,
    NoBarcodeFoundError,
    ValidationError,
)
from app.services.barcode_service import BarcodeExtractor, ZXingDecoder
from app.services.engine_base import BarcodeDecoder, ImageTranscoder
from app.services.image_service import ImageNormalizer
from app.services.scan_service import ScanService
from app.services.storage_service import StorageService


class PartialWriteTranscoder(ImageTranscoder):
    """Writes half a file, then fails, like an encoder dying mid-write."""

    def transcode(self, input_path: Path, output_path: Path) -> None:
        output_path.write_bytes(b"\x89PNG partial")
        raise OSError("encoder crashed")


class TestScanSuccess:

    @pytest.mark.asyncio
    async def test_returns_barcodes_in_order(self, scan_service_factory, sample_image_bytes):
        """Decoded values are returned in detection order."""
        service = scan_service_factory(texts=["8934563138165", "8935049500520"])
        result = await service.scan("photo.jpg", sample_image_bytes)
        assert result == ["8934563138165", "8935049500520"]

    @pytest.mark.asyncio
    async def test_duplicates_are_reported(self, scan_service_factory, sample_image_bytes):
        """Duplicate values survive the pipeline."""
        service = scan_service_factory(texts=["X", "X"])
        assert await service.scan("photo.jpg", sample_image_bytes) == ["X", "X"]

    @pytest.mark.asyncio
    async def test_temporary_files_removed(self, scan_service_factory, storage, list_dir, sample_image_bytes):
        """Both the upload and the normalized PNG are gone after success."""
        service = scan_service_factory(texts=["A"])
        await service.scan("photo.jpg", sample_image_bytes)

        assert list_dir(storage.upload_dir) == []
        assert list_dir(storage.processed_dir) == []

    @pytest.mark.asyncio
    async def test_decoder_receives_normalized_png(self, storage, sample_image_bytes):
        """The decoder sees the normalized PNG, not the raw upload."""
        seen = []

        class RecordingDecoder(BarcodeDecoder):
            def decode(self, image_bytes):
                seen.append(image_bytes)
                return []

        service = ScanService(
            storage=storage,
            normalizer=ImageNormalizer(storage=storage),
            extractor=BarcodeExtractor(decoder=RecordingDecoder()),
        )
        with pytest.raises(NoBarcodeFoundError):
            await service.scan("photo.jpg", sample_image_bytes)

        assert seen and seen[0].startswith(b"\x89PNG")


class TestScanRealEngine:
    """Pillow normalizer and zxing-cpp decoder, no fakes."""

    @pytest.mark.asyncio
    async def test_ean13_and_qr_in_detection_order(self, storage, list_dir, make_barcode_image):
        """A photo with an EAN-13 above a QR code yields both values, top one first."""
        image = make_barcode_image([
            ("8934563138165", zxingcpp.BarcodeFormat.EAN13),
            ("https://example.com", zxingcpp.BarcodeFormat.QRCode),
        ])
        service = ScanService(
            storage=storage,
            normalizer=ImageNormalizer(storage=storage),
            extractor=BarcodeExtractor(decoder=ZXingDecoder()),
        )

        result = await service.scan("shelf.png", image)

        assert result == ["8934563138165", "https://example.com"]
        assert list_dir(storage.upload_dir) == []
        assert list_dir(storage.processed_dir) == []


class TestScanFailures:

    @pytest.mark.asyncio
    async def test_no_barcode_is_validation_error(self, scan_service_factory, storage, list_dir, sample_image_bytes):
        """An image without barcodes is a 400-class error and leaves no files."""
        service = scan_service_factory(texts=[])

        with pytest.raises(NoBarcodeFoundError) as exc_info:
            await service.scan("photo.jpg", sample_image_bytes)

        assert isinstance(exc_info.value, ValidationError)
        assert exc_info.value.message == "No barcode found in the image"
        assert list_dir(storage.upload_dir) == []
        assert list_dir(storage.processed_dir) == []

    @pytest.mark.asyncio
    async def test_missing_image_touches_nothing(self, scan_service_factory, storage, list_dir):
        """No image field: rejected before any directory is created."""
        service = scan_service_factory(texts=["A"])

        with pytest.raises(ValidationError, match="Please upload an image"):
            await service.scan(None, None)

        assert not storage.upload_dir.exists()
        assert list_dir(storage.processed_dir) == []

    @pytest.mark.asyncio
    async def test_oversized_image_rejected_before_write(self, storage, list_dir, sample_image_bytes):
        """Uploads above max_file_size are refused without writing anything."""
        tiny = StorageService(
            upload_dir=str(storage.upload_dir),
            processed_dir=str(storage.processed_dir),
            export_dir=str(storage.export_dir),
            max_file_size=10,
        )
        service = ScanService(storage=tiny, extractor=BarcodeExtractor(decoder=None))

        with pytest.raises(ValidationError, match="exceeds maximum"):
            await service.scan("photo.jpg", sample_image_bytes)

        assert list_dir(storage.upload_dir) == []

    @pytest.mark.asyncio
    async def test_failed_intake_write_leaves_no_file(self, scan_service_factory, storage, list_dir, sample_image_bytes):
        """A disk error after the upload file was opened still removes it."""
        service = scan_service_factory(texts=["A"])

        with patch(
            "aiofiles.threadpool.binary.AsyncBufferedIOBase.write",
            new=AsyncMock(side_effect=OSError(28, "No space left on device")),
        ):
            with pytest.raises(FileStorageError):
                await service.scan("photo.jpg", sample_image_bytes)

        assert list_dir(storage.upload_dir) == []
        assert list_dir(storage.processed_dir) == []

    @pytest.mark.asyncio
    async def test_unreadable_image_is_processing_error(self, scan_service_factory, storage, list_dir):
        """Bytes Pillow cannot open fail as ImageProcessingError and are cleaned up."""
        service = scan_service_factory(texts=["A"])

        with pytest.raises(ImageProcessingError):
            await service.scan("photo.jpg", b"this is not an image")

        assert list_dir(storage.upload_dir) == []
        assert list_dir(storage.processed_dir) == []

    @pytest.mark.asyncio
    async def test_partial_normalized_output_removed(self, scan_service_factory, storage, list_dir, sample_image_bytes):
        """A half-written normalized PNG is deleted along with the upload."""
        normalizer = ImageNormalizer(transcoder=PartialWriteTranscoder(), storage=storage)
        service = scan_service_factory(texts=["A"], normalizer=normalizer)

        with pytest.raises(ImageProcessingError):
            await service.scan("photo.jpg", sample_image_bytes)

        assert list_dir(storage.upload_dir) == []
        assert list_dir(storage.processed_dir) == []

    @pytest.mark.asyncio
    async def test_decoder_fault_is_decode_error(self, scan_service_factory, storage, list_dir, sample_image_bytes):
        """Engine faults become BarcodeDecodeError and both files are removed."""
        service = scan_service_factory(error=RuntimeError("engine crashed"))

        with pytest.raises(BarcodeDecodeError):
            await service.scan("photo.jpg", sample_image_bytes)

        assert list_dir(storage.upload_dir) == []
        assert list_dir(storage.processed_dir) == []
