"""
BarcodeSnap Backend — Barcode Extraction Service
==================================================

What:  Reads every barcode (1D and 2D) out of a normalized image.
How:   zxing-cpp scans the whole frame in one call and reports each symbol;
       we keep the text values in detection order, duplicates included.
Who:   Called by ScanService after normalization.
When:  Once per /upload request.

Outcomes:
    [...texts...]        one entry per detected symbol
    []                   decoder ran fine, nothing found (caller maps to 400)
    BarcodeDecodeError   image unreadable or engine fault (caller maps to 500)
"""

import io
import logging
from typing import List, Optional

import numpy as np
import zxingcpp
from PIL import Image
from starlette.concurrency import run_in_threadpool

from app.exceptions import BarcodeDecodeError
from app.schemas.barcode import DecodedSymbol
from app.services.engine_base import BarcodeDecoder

logger = logging.getLogger(__name__)


def _format_name(fmt) -> str:
    """BarcodeFormat.EAN13 → "EAN13"."""
    return str(fmt).replace("BarcodeFormat.", "")


class ZXingDecoder(BarcodeDecoder):
    """zxing-cpp implementation of BarcodeDecoder."""

    def decode(self, image_bytes: bytes) -> List[DecodedSymbol]:
        with Image.open(io.BytesIO(image_bytes)) as image:
            pixels = np.array(image.convert("L"))
        results = zxingcpp.read_barcodes(pixels)
        return [
            DecodedSymbol(text=result.text or "", symbology=_format_name(result.format))
            for result in results
        ]


class BarcodeExtractor:
    """Maps decoder output to plain text values."""

    def __init__(self, decoder: Optional[BarcodeDecoder] = None):
        self.decoder = decoder or ZXingDecoder()

    async def extract(self, image_bytes: bytes) -> List[str]:
        """
        Decode all barcodes in `image_bytes`.

        Returns:
            Text values in detection order. Not deduplicated. May be empty.

        Raises:
            BarcodeDecodeError: The decoder raised for any reason.
        """
        try:
            symbols = await run_in_threadpool(self.decoder.decode, image_bytes)
        except Exception as e:
            logger.error("Barcode decoder failed: %s", str(e), exc_info=True)
            raise BarcodeDecodeError(
                context={"error_type": type(e).__name__, "error": str(e)},
            )

        barcodes = [symbol.text for symbol in symbols]
        logger.info(
            "Decoded %d barcode(s): %s",
            len(barcodes),
            ", ".join(f"{s.symbology}" for s in symbols) or "none",
        )
        return barcodes


# ── Singleton Instance ────────────────────────────────────────────────────
barcode_extractor = BarcodeExtractor()
