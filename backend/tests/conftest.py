"""
BarcodeSnap Backend — Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Inventory (all function-scoped):
    ├── storage:            StorageService rooted in a fresh tmp directory
    ├── make_image_bytes:   factory for real Pillow-encoded images
    ├── sample_image_bytes: a small RGB JPEG
    ├── make_barcode_image: factory for images holding real zxing-rendered barcodes
    ├── fake_decoder:       factory for BarcodeDecoder fakes (results or fault)
    ├── scan_service_factory: ScanService wired to tmp storage + fake decoder
    ├── sheets_client:      MagicMock shaped like a Sheets v4 resource
    └── test_client:        HTTPX AsyncClient bound to the FastAPI app
"""

import io
import os
import tempfile
from typing import List, Optional
from unittest.mock import MagicMock

# Override settings for testing BEFORE any app imports
_scratch = tempfile.mkdtemp(prefix="barcodesnap_test_")
os.environ["UPLOAD_DIR"] = os.path.join(_scratch, "uploads")
os.environ["PROCESSED_DIR"] = os.path.join(_scratch, "processed_uploads")
os.environ["EXPORT_DIR"] = os.path.join(_scratch, "exports")
os.environ["GOOGLE_CLOUD_CREDENTIALS"] = ""
os.environ["EXPORT_DELIVERY_MODE"] = "persisted"
os.environ["LOG_LEVEL"] = "WARNING"

import numpy as np
import pytest
import pytest_asyncio
import zxingcpp
from httpx import AsyncClient, ASGITransport
from PIL import Image

from app.schemas.barcode import DecodedSymbol
from app.services.barcode_service import BarcodeExtractor
from app.services.engine_base import BarcodeDecoder
from app.services.image_service import ImageNormalizer
from app.services.scan_service import ScanService
from app.services.storage_service import StorageService


class FakeDecoder(BarcodeDecoder):
    """Returns canned symbols, or raises `error` when given."""

    def __init__(self, texts: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.texts = texts or []
        self.error = error
        self.calls = 0

    def decode(self, image_bytes: bytes) -> List[DecodedSymbol]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [DecodedSymbol(text=text, symbology="EAN13") for text in self.texts]


@pytest.fixture
def storage(tmp_path):
    """StorageService whose three directories live under tmp_path."""
    return StorageService(
        upload_dir=str(tmp_path / "uploads"),
        processed_dir=str(tmp_path / "processed_uploads"),
        export_dir=str(tmp_path / "exports"),
    )


@pytest.fixture
def make_image_bytes():
    """
    Factory for real encoded images.

    Usage:
        data = make_image_bytes(size=(800, 600), fmt="PNG", mode="RGB")
    """

    def _make(size=(320, 240), fmt="JPEG", mode="RGB", color=(200, 30, 30)):
        if mode == "L" and isinstance(color, tuple):
            color = color[0]
        image = Image.new(mode, size, color)
        buffer = io.BytesIO()
        image.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def sample_image_bytes(make_image_bytes):
    return make_image_bytes()


@pytest.fixture
def make_barcode_image():
    """
    Factory for a PNG holding real barcodes stacked top to bottom.

    Usage:
        data = make_barcode_image([
            ("8934563138165", zxingcpp.BarcodeFormat.EAN13),
            ("https://example.com", zxingcpp.BarcodeFormat.QRCode),
        ])
    """

    def _make(symbols, scale=4, margin=40, fmt="PNG"):
        tiles = []
        for text, barcode_format in symbols:
            barcode = zxingcpp.create_barcode(text, barcode_format)
            tile = Image.fromarray(np.asarray(zxingcpp.write_barcode_to_image(barcode)).squeeze())
            tiles.append(tile.resize((tile.width * scale, tile.height * scale), Image.NEAREST))

        width = max(tile.width for tile in tiles) + 2 * margin
        height = sum(tile.height for tile in tiles) + margin * (len(tiles) + 1)
        canvas = Image.new("L", (width, height), 255)
        top = margin
        for tile in tiles:
            canvas.paste(tile.convert("L"), (margin, top))
            top += tile.height + margin

        buffer = io.BytesIO()
        canvas.save(buffer, format=fmt)
        return buffer.getvalue()

    return _make


@pytest.fixture
def fake_decoder():
    return FakeDecoder


@pytest.fixture
def scan_service_factory(storage):
    """
    Build a ScanService with the real Pillow normalizer and a fake decoder.

    Usage:
        service = scan_service_factory(texts=["A", "B"])
        service = scan_service_factory(error=RuntimeError("boom"))
    """

    def _build(texts=None, error=None, normalizer=None):
        return ScanService(
            storage=storage,
            normalizer=normalizer or ImageNormalizer(storage=storage),
            extractor=BarcodeExtractor(decoder=FakeDecoder(texts=texts, error=error)),
        )

    return _build


@pytest.fixture
def list_dir():
    """Files currently in a directory (empty list if it does not exist)."""

    def _list(path) -> list:
        return sorted(p.name for p in path.iterdir()) if path.exists() else []

    return _list


@pytest.fixture
def sheets_client():
    """
    MagicMock shaped like googleapiclient's Sheets v4 resource.

    Append calls are recorded on:
        sheets_client.spreadsheets.return_value.values.return_value.append
    """
    client = MagicMock()
    append = client.spreadsheets.return_value.values.return_value.append
    append.return_value.execute.return_value = {"updates": {"updatedRows": 1}}
    return client


@pytest_asyncio.fixture
async def test_client():
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The lifespan does not run, so app.state.sheets_connector is absent unless
    a test sets it; it is removed again afterwards.
    """
    from app.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    if hasattr(app.state, "sheets_connector"):
        del app.state.sheets_connector
